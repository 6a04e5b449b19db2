import uuid

from fastapi import APIRouter, Depends

from billsplit.core.sessions import SessionStore, get_store
from billsplit.schemas.session import ParticipantCreate, PayerUpdate, SessionResponse
from billsplit.services.session_service import add_participant, remove_participant, set_payer

router = APIRouter(tags=["participants"])


@router.post("/api/sessions/{session_id}/participants", response_model=SessionResponse, status_code=201)
async def create_participant(
    session_id: uuid.UUID,
    body: ParticipantCreate,
    store: SessionStore = Depends(get_store),
):
    session, notices = add_participant(store.load(session_id), body.name)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.delete("/api/sessions/{session_id}/participants/{participant_id}", response_model=SessionResponse)
async def delete_participant(
    session_id: uuid.UUID,
    participant_id: str,
    store: SessionStore = Depends(get_store),
):
    session, notices = remove_participant(store.load(session_id), participant_id)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.put("/api/sessions/{session_id}/payer", response_model=SessionResponse)
async def update_payer(
    session_id: uuid.UUID,
    body: PayerUpdate,
    store: SessionStore = Depends(get_store),
):
    session, notices = set_payer(store.load(session_id), body.participant_id)
    store.save(session)
    return SessionResponse.from_session(session, notices)
