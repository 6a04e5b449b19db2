import uuid

from fastapi import APIRouter, Depends

from billsplit.core.sessions import SessionStore, get_store
from billsplit.schemas.assignment import (
    PortionsRequest, PortionsResponse, SharedRequest, ToggleAssignmentRequest,
    UnitChangeRequest, UnitCountRequest,
)
from billsplit.schemas.session import SessionResponse
from billsplit.services.session_service import (
    change_units, get_item, portion_editor, save_portions, set_item_shared, set_units,
    toggle_assignment,
)

router = APIRouter(tags=["assignments"])


@router.post("/api/sessions/{session_id}/items/{index}/toggle", response_model=SessionResponse)
async def toggle_item_participant(
    session_id: uuid.UUID,
    index: int,
    body: ToggleAssignmentRequest,
    store: SessionStore = Depends(get_store),
):
    session, notices = toggle_assignment(store.load(session_id), index, body.participant_id)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.post("/api/sessions/{session_id}/items/{index}/units", response_model=SessionResponse)
async def step_item_units(
    session_id: uuid.UUID,
    index: int,
    body: UnitChangeRequest,
    store: SessionStore = Depends(get_store),
):
    """The +/- controls next to a person on a multi-unit item."""
    session, notices = change_units(store.load(session_id), index, body.participant_id, body.delta)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.put("/api/sessions/{session_id}/items/{index}/units", response_model=SessionResponse)
async def put_item_units(
    session_id: uuid.UUID,
    index: int,
    body: UnitCountRequest,
    store: SessionStore = Depends(get_store),
):
    session, notices = set_units(store.load(session_id), index, body.participant_id, body.count)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.put("/api/sessions/{session_id}/items/{index}/shared", response_model=SessionResponse)
async def put_item_shared(
    session_id: uuid.UUID,
    index: int,
    body: SharedRequest,
    store: SessionStore = Depends(get_store),
):
    session, notices = set_item_shared(store.load(session_id), index, body.shared)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.get("/api/sessions/{session_id}/items/{index}/portions", response_model=PortionsResponse)
async def get_item_portions(
    session_id: uuid.UUID,
    index: int,
    store: SessionStore = Depends(get_store),
):
    session = store.load(session_id)
    item = get_item(session, index)
    order = {p.id: i for i, p in enumerate(session.participants)}
    portions = portion_editor(session, index)
    return PortionsResponse(
        item_index=index,
        quantity=item.quantity,
        portions=[sorted(portion, key=order.get) for portion in portions],
    )


@router.put("/api/sessions/{session_id}/items/{index}/portions", response_model=SessionResponse)
async def put_item_portions(
    session_id: uuid.UUID,
    index: int,
    body: PortionsRequest,
    store: SessionStore = Depends(get_store),
):
    session, notices = save_portions(store.load(session_id), index, body.portions)
    store.save(session)
    return SessionResponse.from_session(session, notices)
