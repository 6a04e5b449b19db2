import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, NamedTuple

from billsplit.core.errors import ErrorCode, ItemNotFoundError
from billsplit.models.allocation import Allocation
from billsplit.models.assignment import AssignmentStore
from billsplit.models.item import Item
from billsplit.models.notice import Notice
from billsplit.models.session import BillSession
from billsplit.services import assignment_service, participant_service
from billsplit.services.assignment_service import AssignmentResult
from billsplit.services.calculation_service import allocate
from billsplit.services.item_service import create_item, mutate_quantity

logger = logging.getLogger(__name__)


class SessionResult(NamedTuple):
    session: BillSession
    notices: list[Notice]


def get_item(session: BillSession, index: int) -> Item:
    if not 0 <= index < len(session.items):
        raise ItemNotFoundError(index)
    return session.items[index]


def _with_store(session: BillSession, result: AssignmentResult) -> SessionResult:
    return SessionResult(session.model_copy(update={"assignments": result.store}), result.notices)


def load_items(
    session: BillSession,
    items: Iterable[Item],
    receipt_total: Decimal | None = None,
    image_mime_type: str | None = None,
) -> SessionResult:
    """Replace the session's items, e.g. after reading a new receipt. Old assignments go."""
    notices = []
    if session.assignments.entries:
        notices.append(Notice(
            code=ErrorCode.ASSIGNMENTS_RESET,
            message="Assignments from the previous receipt were cleared.",
        ))
    updated = session.model_copy(update={
        "items": tuple(items),
        "assignments": AssignmentStore(),
        "receipt_total": receipt_total,
        "image_mime_type": image_mime_type,
    })
    return SessionResult(updated, notices)


def add_item(session: BillSession, raw: Mapping[str, Any]) -> SessionResult:
    item = create_item(raw, index=len(session.items))
    logger.info(f"Session {session.id}: added item {item.index} ({item.name} x{item.quantity})")
    return SessionResult(session.model_copy(update={"items": session.items + (item,)}), [])


def change_quantity(session: BillSession, index: int, delta: int) -> SessionResult:
    before = get_item(session, index)
    after = mutate_quantity(before, delta)
    result = assignment_service.apply_quantity_change(session.assignments, before, after)
    items = session.items[:index] + (after,) + session.items[index + 1:]
    return SessionResult(
        session.model_copy(update={"items": items, "assignments": result.store}),
        result.notices,
    )


def remove_item(session: BillSession, index: int) -> SessionResult:
    get_item(session, index)
    remaining = [item for item in session.items if item.index != index]
    items = tuple(item.model_copy(update={"index": i}) for i, item in enumerate(remaining))
    store = assignment_service.drop_item(session.assignments, index)
    return SessionResult(session.model_copy(update={"items": items, "assignments": store}), [])


def add_participant(session: BillSession, name: str) -> SessionResult:
    participants, participant = participant_service.add_participant(session.participants, name)
    logger.info(f"Session {session.id}: added participant {participant.id} ({participant.name})")
    return SessionResult(session.model_copy(update={"participants": participants}), [])


def remove_participant(session: BillSession, participant_id: str) -> SessionResult:
    participants = participant_service.remove_participant(session.participants, participant_id)
    store = assignment_service.purge_participant(session.assignments, participant_id)
    return SessionResult(
        session.model_copy(update={"participants": participants, "assignments": store}), []
    )


def set_payer(session: BillSession, participant_id: str) -> SessionResult:
    participants = participant_service.set_payer(session.participants, participant_id)
    return SessionResult(session.model_copy(update={"participants": participants}), [])


def toggle_assignment(session: BillSession, index: int, participant_id: str) -> SessionResult:
    item = get_item(session, index)
    participant_service.get_participant(session.participants, participant_id)
    return _with_store(session, assignment_service.toggle_participant(session.assignments, item, participant_id))


def change_units(session: BillSession, index: int, participant_id: str, delta: int) -> SessionResult:
    item = get_item(session, index)
    participant_service.get_participant(session.participants, participant_id)
    if delta > 0:
        result = assignment_service.increment_unit(session.assignments, item, participant_id)
    else:
        result = assignment_service.decrement_unit(session.assignments, item, participant_id)
    return _with_store(session, result)


def set_units(session: BillSession, index: int, participant_id: str, count: int) -> SessionResult:
    item = get_item(session, index)
    participant_service.get_participant(session.participants, participant_id)
    return _with_store(session, assignment_service.set_unit_count(session.assignments, item, participant_id, count))


def set_item_shared(session: BillSession, index: int, shared: bool) -> SessionResult:
    item = get_item(session, index)
    return _with_store(session, assignment_service.set_shared(session.assignments, item, shared))


def portion_editor(session: BillSession, index: int) -> tuple[frozenset[str], ...]:
    return assignment_service.open_portion_editor(session.assignments, get_item(session, index))


def save_portions(session: BillSession, index: int, portions: Iterable[Iterable[str]]) -> SessionResult:
    item = get_item(session, index)
    table = [frozenset(portion) for portion in portions]
    for participant_id in frozenset().union(*table):
        participant_service.get_participant(session.participants, participant_id)
    return _with_store(session, assignment_service.set_portion_assignment(session.assignments, item, table))


def allocate_session(session: BillSession) -> Allocation:
    return allocate(session.items, session.participants, session.assignments)
