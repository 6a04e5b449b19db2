import uuid

from billsplit.core.errors import SessionNotFoundError
from billsplit.models.session import BillSession


class SessionStore:
    """In-memory bill sessions. Nothing survives a restart."""

    def __init__(self) -> None:
        self._sessions: dict[uuid.UUID, BillSession] = {}

    def create(self) -> BillSession:
        session = BillSession()
        self._sessions[session.id] = session
        return session

    def get(self, session_id: uuid.UUID) -> BillSession | None:
        return self._sessions.get(session_id)

    def load(self, session_id: uuid.UUID) -> BillSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def save(self, session: BillSession) -> BillSession:
        self._sessions[session.id] = session
        return session

    def delete(self, session_id: uuid.UUID) -> bool:
        return self._sessions.pop(session_id, None) is not None


session_store = SessionStore()


def get_store() -> SessionStore:
    return session_store
