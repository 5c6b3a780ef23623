"""In-memory storage of workspace sessions."""
from typing import Callable, Dict, List, Optional

from core.logging import log_info
from services.session import SessionContext


class SessionRepository:
    """Keeps one SessionContext per session id for the life of the process."""

    def __init__(self, factory: Callable[[str], SessionContext] = SessionContext):
        self._factory = factory
        self._storage: Dict[str, SessionContext] = {}

    def get_by_id(self, session_id: str) -> Optional[SessionContext]:
        """Get session by ID."""
        return self._storage.get(session_id)

    def get_or_create(self, session_id: str) -> SessionContext:
        """Get session by ID, creating an empty one on first use."""
        session = self._storage.get(session_id)
        if session is None:
            session = self._factory(session_id)
            self._storage[session_id] = session
            log_info(f"Created workspace session {session_id}", "sessions")
        return session

    def get_all(self) -> List[SessionContext]:
        return list(self._storage.values())

    def delete(self, session_id: str) -> bool:
        """Delete a session."""
        session = self._storage.pop(session_id, None)
        if session is None:
            return False
        session.clear()
        return True

    def clear(self):
        """Clear all sessions."""
        self._storage.clear()


session_repository = SessionRepository()
