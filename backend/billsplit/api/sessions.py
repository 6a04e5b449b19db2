import uuid

from fastapi import APIRouter, Depends

from billsplit.core.errors import SessionNotFoundError
from billsplit.core.sessions import SessionStore, get_store
from billsplit.schemas.session import SessionResponse
from billsplit.schemas.summary import SummaryResponse
from billsplit.services.settlement_service import build_summary

router = APIRouter(tags=["sessions"])


@router.post("/api/sessions", response_model=SessionResponse, status_code=201)
async def create_session(store: SessionStore = Depends(get_store)):
    return SessionResponse.from_session(store.create())


@router.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: uuid.UUID, store: SessionStore = Depends(get_store)):
    return SessionResponse.from_session(store.load(session_id))


@router.delete("/api/sessions/{session_id}", status_code=204)
async def delete_session(session_id: uuid.UUID, store: SessionStore = Depends(get_store)):
    if not store.delete(session_id):
        raise SessionNotFoundError(session_id)


@router.get("/api/sessions/{session_id}/summary", response_model=SummaryResponse)
async def get_summary(session_id: uuid.UUID, store: SessionStore = Depends(get_store)):
    """Who owes what, rounded for display."""
    return build_summary(store.load(session_id))
