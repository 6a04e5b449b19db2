import logging
from typing import Iterable, NamedTuple

from billsplit.core.errors import (
    AppError, ErrorCode, InvariantViolation, LimitExceededError, ValidationError,
)
from billsplit.models.assignment import AssignmentStore, ItemAssignment
from billsplit.models.item import Item
from billsplit.models.notice import Notice

logger = logging.getLogger(__name__)


class AssignmentResult(NamedTuple):
    store: AssignmentStore
    notices: list[Notice]


UNASSIGNED = "unassigned"
SIMPLE = "simple"
COUNTED = "counted"
SHARED_UNIFORM = "shared_uniform"
SHARED_BY_PORTION = "shared_by_portion"


def item_state(entry: ItemAssignment, item: Item) -> str:
    """Which allocation rule applies to the item, in priority order."""
    if not entry.linked:
        return UNASSIGNED
    if entry.is_shared and item.quantity > 1:
        if entry.has_portions:
            return SHARED_BY_PORTION
        if entry.has_counts:
            return SHARED_UNIFORM
    elif item.quantity > 1 and entry.has_counts:
        return COUNTED
    return SIMPLE


def _blocked(store: AssignmentStore, item: Item, error: AppError) -> AssignmentResult:
    logger.debug(f"Blocked change on item {item.index} ({item.name}): {error.message}")
    return AssignmentResult(store, [Notice.from_error(error, item.index)])


def _hint(store: AssignmentStore, item: Item, code: str, message: str) -> AssignmentResult:
    return AssignmentResult(store, [Notice(code=code, message=message, item_index=item.index)])


def _reset(store: AssignmentStore, item: Item, message: str, keep_shared: bool = False) -> AssignmentResult:
    logger.info(f"Reset assignments for item {item.index} ({item.name}): {message}")
    return AssignmentResult(
        store.with_entry(item.index, ItemAssignment(is_shared=keep_shared)),
        [Notice.from_error(InvariantViolation(message), item.index)],
    )


def _without(entry: ItemAssignment, participant_id: str) -> ItemAssignment:
    return entry.model_copy(update={
        "participants": entry.participants - {participant_id},
        "unit_counts": {pid: c for pid, c in entry.unit_counts.items() if pid != participant_id},
        "portions": tuple(portion - {participant_id} for portion in entry.portions),
    })


def _union(portions: Iterable[frozenset[str]]) -> frozenset[str]:
    return frozenset().union(*portions)


def toggle_participant(store: AssignmentStore, item: Item, participant_id: str) -> AssignmentResult:
    """
    The per-person bubble on an item.

    Switching someone off always works and clears their units and portions.
    Switching someone on only works for single-unit items; multi-unit items
    are claimed through the unit counter or the portion editor.
    """
    entry = store.entry(item.index)

    if participant_id in entry.linked:
        return AssignmentResult(store.with_entry(item.index, _without(entry, participant_id)), [])

    if item.quantity == 1:
        updated = entry.model_copy(update={"participants": entry.participants | {participant_id}})
        return AssignmentResult(store.with_entry(item.index, updated), [])

    if entry.has_portions:
        return _hint(store, item, ErrorCode.PORTIONS_ACTIVE,
                     f"{item.name} is split by portion. Edit the portions to add someone.")
    return _hint(store, item, ErrorCode.UNITS_REQUIRED,
                 f"Use + to choose how many of the {item.quantity} {item.name} each person had.")


def _current_units(entry: ItemAssignment, item: Item, participant_id: str) -> int:
    if item.quantity == 1:
        return 1 if participant_id in entry.linked else 0
    return entry.count_for(participant_id)


def set_unit_count(store: AssignmentStore, item: Item, participant_id: str, count: int) -> AssignmentResult:
    count = max(0, count)
    entry = store.entry(item.index)
    current = _current_units(entry, item, participant_id)

    if count == current:
        return AssignmentResult(store, [])

    if item.quantity > 1 and entry.has_portions:
        return _hint(store, item, ErrorCode.PORTIONS_ACTIVE,
                     f"{item.name} is split by portion. Edit the portions instead.")

    if count > item.quantity:
        return _blocked(store, item, LimitExceededError(
            f"{item.name} only has {item.quantity} unit{'s' if item.quantity > 1 else ''}."
        ))

    if item.quantity == 1:
        if count:
            updated = entry.model_copy(update={"participants": entry.participants | {participant_id}})
        else:
            updated = _without(entry, participant_id)
        return AssignmentResult(store.with_entry(item.index, updated), [])

    # Shared units may overlap, so only the per-person ceiling above applies.
    if not entry.is_shared and count > current:
        assigned = entry.claimed_units - current + count
        if assigned > item.quantity:
            return _blocked(store, item, LimitExceededError(
                f"All {item.quantity} units of {item.name} are already assigned."
            ))

    counts = dict(entry.unit_counts)
    if count:
        counts[participant_id] = count
        participants = entry.participants | {participant_id}
    else:
        counts.pop(participant_id, None)
        participants = entry.participants - {participant_id}

    notices = []
    # Counted items hold no participant without units.
    uncounted = participants - frozenset(counts) if not entry.is_shared and counts else frozenset()
    if uncounted:
        participants = participants - uncounted
        logger.info(f"Item {item.index} ({item.name}) switched to unit counts, dropped {len(uncounted)} without units")
        notices.append(Notice(
            code=ErrorCode.SPLIT_BY_UNITS,
            message=f"{item.name} is now split by units. Use + to give everyone else on it their units.",
            item_index=item.index,
        ))

    updated = entry.model_copy(update={"unit_counts": counts, "participants": participants})
    return AssignmentResult(store.with_entry(item.index, updated), notices)


def increment_unit(store: AssignmentStore, item: Item, participant_id: str) -> AssignmentResult:
    current = _current_units(store.entry(item.index), item, participant_id)
    return set_unit_count(store, item, participant_id, current + 1)


def decrement_unit(store: AssignmentStore, item: Item, participant_id: str) -> AssignmentResult:
    current = _current_units(store.entry(item.index), item, participant_id)
    return set_unit_count(store, item, participant_id, current - 1)


def set_shared(store: AssignmentStore, item: Item, shared: bool) -> AssignmentResult:
    entry = store.entry(item.index)
    if shared == entry.is_shared:
        return AssignmentResult(store, [])

    if shared:
        if item.quantity == 1:
            return _hint(store, item, ErrorCode.NOT_SHAREABLE,
                         f"{item.name} is a single unit. Add people to split it equally.")
        # Counts stay as they are; the portion table is only written by the editor.
        return AssignmentResult(store.with_entry(item.index, entry.model_copy(update={"is_shared": True})), [])

    if entry.claimed_units > item.quantity:
        return _reset(store, item,
                      f"More than {item.quantity} units of {item.name} were assigned, so its assignments were cleared.")

    updated = entry.model_copy(update={"is_shared": False, "portions": ()})
    return AssignmentResult(store.with_entry(item.index, updated), [])


def open_portion_editor(store: AssignmentStore, item: Item) -> tuple[frozenset[str], ...]:
    """The per-unit table to edit: the saved one, or one empty portion per unit."""
    entry = store.entry(item.index)
    if entry.portions and len(entry.portions) == item.quantity:
        return entry.portions
    return tuple(frozenset() for _ in range(item.quantity))


def toggle_portion(
    portions: tuple[frozenset[str], ...], unit_index: int, participant_id: str
) -> tuple[frozenset[str], ...]:
    if not 0 <= unit_index < len(portions):
        raise ValidationError(f"Unit {unit_index + 1} does not exist", detail=f"{len(portions)} units")
    portion = portions[unit_index]
    updated = portion - {participant_id} if participant_id in portion else portion | {participant_id}
    return portions[:unit_index] + (updated,) + portions[unit_index + 1:]


def set_portion_assignment(
    store: AssignmentStore, item: Item, portions: Iterable[Iterable[str]]
) -> AssignmentResult:
    """
    Save the portion editor. The table replaces any unit counts for the item,
    and the item's participants become everyone named in some portion.
    """
    if item.quantity == 1:
        return _hint(store, item, ErrorCode.NOT_SHAREABLE,
                     f"{item.name} is a single unit. Add people to split it equally.")

    table = tuple(frozenset(portion) for portion in portions)
    if len(table) != item.quantity:
        raise ValidationError(
            f"{item.name} needs exactly {item.quantity} portions",
            detail=f"got {len(table)}",
        )

    entry = store.entry(item.index)
    if entry.unit_counts:
        logger.debug(f"Dropping unit counts of item {item.index} in favour of its portion table")

    updated = ItemAssignment(participants=_union(table), is_shared=True, portions=table)
    return AssignmentResult(store.with_entry(item.index, updated), [])


def apply_quantity_change(store: AssignmentStore, before: Item, after: Item) -> AssignmentResult:
    """Bring an item's assignments back in line after its quantity changed."""
    entry = store.entries.get(after.index)
    quantity = after.quantity
    if entry is None or quantity == before.quantity:
        return AssignmentResult(store, [])

    if not entry.is_shared:
        if quantity < entry.claimed_units:
            return _reset(store, after,
                          f"{after.name} now has fewer units than were assigned, so its assignments were cleared.")
        return AssignmentResult(store, [])

    if quantity == 1:
        updated = ItemAssignment(participants=entry.linked | _union(entry.portions))
        return AssignmentResult(store.with_entry(after.index, updated), [Notice(
            code=ErrorCode.SHARED_CLEARED,
            message=f"{after.name} is now a single unit and will be split equally between its people.",
            item_index=after.index,
        )])

    if entry.portions:
        if quantity > len(entry.portions):
            table = entry.portions + tuple(frozenset() for _ in range(quantity - len(entry.portions)))
        else:
            if any(entry.portions[quantity:]):
                return _reset(store, after,
                              f"A removed unit of {after.name} was claimed, so its portions were cleared.",
                              keep_shared=True)
            table = entry.portions[:quantity]
        updated = entry.model_copy(update={"portions": table, "participants": _union(table)})
        return AssignmentResult(store.with_entry(after.index, updated), [])

    if any(count > quantity for count in entry.unit_counts.values()):
        return _reset(store, after,
                      f"Someone claimed more than {quantity} units of {after.name}, so its assignments were cleared.",
                      keep_shared=True)
    return AssignmentResult(store, [])


def purge_participant(store: AssignmentStore, participant_id: str) -> AssignmentStore:
    entries = {
        index: _without(entry, participant_id) if participant_id in entry.linked or any(
            participant_id in portion for portion in entry.portions
        ) else entry
        for index, entry in store.entries.items()
    }
    return AssignmentStore(entries=entries)


def drop_item(store: AssignmentStore, index: int) -> AssignmentStore:
    """Forget an item's entry and shift the entries of later items down by one."""
    entries = {}
    for i, entry in store.entries.items():
        if i < index:
            entries[i] = entry
        elif i > index:
            entries[i - 1] = entry
    return AssignmentStore(entries=entries)
