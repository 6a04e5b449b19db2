import logging
from decimal import Decimal

from billsplit.models.participant import Participant
from billsplit.models.session import BillSession
from billsplit.services.calculation_service import allocate
from billsplit.utils.currency_utils import round_shares, to_cents

logger = logging.getLogger(__name__)


def _person(p: Participant) -> dict:
    return {
        "participant_id": p.id,
        "name": p.name,
        "initial": p.initial,
        "color": p.color,
        "is_payer": p.is_payer,
    }


def build_summary(session: BillSession) -> dict:
    """
    The "who owes what" view of a session.

    Allocation runs on exact amounts; this is where they get rounded, once.
    Consumption (plus whatever nobody was billed for) is rounded with
    round_shares so it adds up to the bill. Everything else is read off that
    column: owed is consumption with the payer at zero, the payer's refund is
    the bill minus what they consumed, and each person's breakdown lines add
    up to their consumption. Every non-payer with something to pay gets one
    transfer to the payer. Without a payer there are no transfers, only
    per-person amounts.
    """
    allocation = allocate(session.items, session.participants, session.assignments)
    seed = str(session.id)
    payer = session.payer

    consumed = round_shares({**allocation.personal_consumption, None: allocation.unallocated}, seed=seed)
    unallocated = consumed.pop(None)
    total_bill = sum(consumed.values(), unallocated)
    owed = {pid: Decimal("0.00") if payer is not None and pid == payer.id else amount
            for pid, amount in consumed.items()}

    people = []
    for p in session.participants:
        lines = allocation.breakdown[p.id]
        amounts = round_shares(
            {i: line.amount for i, line in enumerate(lines)},
            seed=f"{seed}:{p.id}",
            total=consumed[p.id],
        )
        people.append({
            **_person(p),
            "owed": owed[p.id],
            "consumption": consumed[p.id],
            "breakdown": [
                {
                    "item_index": line.item_index,
                    "item_name": line.item_name,
                    "amount": amounts[i],
                    "note": line.note,
                }
                for i, line in enumerate(lines)
            ],
        })

    transfers = []
    if payer is not None:
        for p in session.participants:
            if p.id == payer.id or owed[p.id] <= Decimal("0"):
                continue
            transfers.append({
                "from_participant_id": p.id,
                "from_name": p.name,
                "to_participant_id": payer.id,
                "to_name": payer.name,
                "amount": owed[p.id],
            })

    receipt_total = to_cents(session.receipt_total) if session.receipt_total is not None else None

    if receipt_total is not None and receipt_total != total_bill:
        logger.info(f"Session {session.id}: items add up to {total_bill}, receipt says {receipt_total}")

    return {
        "total_bill": total_bill,
        "receipt_total": receipt_total,
        "receipt_total_matches": None if receipt_total is None else receipt_total == total_bill,
        "payer": _person(payer) if payer is not None else None,
        "payer_refund": total_bill - consumed[payer.id] if payer is not None else None,
        "unallocated": unallocated,
        "flagged_items": allocation.flagged_items,
        "participants": people,
        "transfers": transfers,
    }
