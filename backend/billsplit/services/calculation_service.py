import logging
from decimal import Decimal
from typing import Sequence

from billsplit.core.errors import AllocationInputError
from billsplit.models.allocation import Allocation, BreakdownLine
from billsplit.models.assignment import AssignmentStore, ItemAssignment
from billsplit.models.item import Item
from billsplit.models.participant import Participant
from billsplit.services.assignment_service import (
    COUNTED, SHARED_BY_PORTION, SHARED_UNIFORM, UNASSIGNED, item_state,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# (participant_id, amount, note)
Share = tuple[str, Decimal, str]


def _check_input(items: Sequence[Item], participant_ids: list[str], store: AssignmentStore) -> None:
    items_by_index = {item.index: item for item in items}
    if len(items_by_index) != len(items):
        raise AllocationInputError("Item indexes must be unique")

    known = set(participant_ids)
    for index, entry in store.entries.items():
        item = items_by_index.get(index)
        if item is None:
            raise AllocationInputError(f"Assignments reference unknown item {index}")
        unknown = entry.linked.union(*entry.portions) - known
        if unknown:
            raise AllocationInputError(
                f"Assignments for item {index} reference unknown participants: {sorted(unknown)}"
            )
        if entry.has_portions and len(entry.portions) != item.quantity:
            raise AllocationInputError(
                f"Item {index} has {len(entry.portions)} portions but quantity {item.quantity}"
            )


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def _split_equally(amount: Decimal, sharers: list[str], note: str) -> list[Share]:
    share = amount / len(sharers)
    return [(pid, share, note) for pid in sharers]


def _by_portion(item: Item, entry: ItemAssignment, linked: list[str]) -> list[Share]:
    shares: list[Share] = []
    for unit, claimants in enumerate(entry.portions, start=1):
        sharers = [pid for pid in linked if pid in claimants]
        if sharers:
            others = len(sharers) - 1
            note = f"unit {unit} of {item.quantity}"
            note += f", shared with {_plural(others, 'other')}" if others else ", whole unit"
        else:
            sharers = linked
            note = f"unit {unit} of {item.quantity}, unclaimed, split {len(sharers)} ways"
        shares.extend(_split_equally(item.unit_price, sharers, note))
    return shares


def _shared_uniform(item: Item, entry: ItemAssignment, linked: list[str]) -> list[Share]:
    totals = {pid: ZERO for pid in linked}
    for unit in range(1, item.quantity + 1):
        sharers = [pid for pid in linked if entry.count_for(pid) >= unit] or linked
        share = item.unit_price / len(sharers)
        for pid in sharers:
            totals[pid] += share

    shares: list[Share] = []
    for pid, amount in totals.items():
        count = entry.count_for(pid)
        if not amount and not count:
            continue
        note = f"{count} of {item.quantity} shared units" if count else "share of unclaimed units"
        shares.append((pid, amount, note))
    return shares


def _counted(item: Item, entry: ItemAssignment, linked: list[str]) -> tuple[list[Share], Decimal]:
    shares = [
        (pid, item.unit_price * entry.count_for(pid), f"{entry.count_for(pid)} x {item.unit_price:.2f}")
        for pid in linked
        if entry.count_for(pid) > 0
    ]
    unclaimed = max(item.quantity - entry.claimed_units, 0)
    return shares, item.unit_price * unclaimed


def _allocate_item(item: Item, entry: ItemAssignment, everyone: list[str]) -> tuple[list[Share], Decimal] | None:
    """
    Shares for one item and the amount nobody is billed for.
    Returns None when there is nobody at all to bill.
    """
    linked = [pid for pid in everyone if pid in entry.linked]
    state = item_state(entry, item)

    if state == UNASSIGNED:
        if not everyone:
            return None
        return _split_equally(item.total_price, everyone, "equal split, unassigned"), ZERO

    if state == SHARED_BY_PORTION:
        return _by_portion(item, entry, linked), ZERO

    if state == SHARED_UNIFORM:
        return _shared_uniform(item, entry, linked), ZERO

    if state == COUNTED:
        return _counted(item, entry, linked)

    note = "full amount" if len(linked) == 1 else f"split {len(linked)} ways"
    return _split_equally(item.total_price, linked, note), ZERO


def allocate(
    items: Sequence[Item],
    participants: Sequence[Participant],
    store: AssignmentStore,
) -> Allocation:
    """
    Work out what every participant owes for the bill.

    Pure function of its inputs: amounts are exact Decimals, rounding is left
    to presentation. Items nobody is linked to are split across everyone.
    The payer's owed amount is forced to zero and payer_refund is what the
    others owe them in total.
    """
    everyone = [p.id for p in participants]
    _check_input(items, everyone, store)

    consumption = {pid: ZERO for pid in everyone}
    breakdown: dict[str, list[BreakdownLine]] = {pid: [] for pid in everyone}
    unallocated = ZERO
    flagged: list[int] = []

    for item in sorted(items, key=lambda i: i.index):
        result = _allocate_item(item, store.entry(item.index), everyone)
        if result is None:
            logger.warning(f"Item {item.index} ({item.name}) has nobody to bill")
            flagged.append(item.index)
            unallocated += item.total_price
            continue

        shares, unbilled = result
        unallocated += unbilled
        for pid, amount, note in shares:
            consumption[pid] += amount
            breakdown[pid].append(BreakdownLine(
                item_index=item.index, item_name=item.name, amount=amount, note=note,
            ))

    total_bill = sum((item.total_price for item in items), ZERO)
    owed = dict(consumption)

    payer = next((p for p in participants if p.is_payer), None)
    payer_refund = None
    if payer is not None:
        owed[payer.id] = ZERO
        payer_refund = total_bill - consumption[payer.id]

    return Allocation(
        owed=owed,
        breakdown=breakdown,
        personal_consumption=consumption,
        total_bill=total_bill,
        payer_id=payer.id if payer else None,
        payer_refund=payer_refund,
        unallocated=unallocated,
        flagged_items=flagged,
    )
