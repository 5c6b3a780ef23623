"""Repositories module."""
from repositories.session_repository import session_repository, SessionRepository

__all__ = [
    "session_repository",
    "SessionRepository",
]
