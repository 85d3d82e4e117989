"""SQLite-backed persistence for the interview application state."""
from .app_state import CandidateNotFoundError, InvalidStoreActionError, reduce
from .session_store import STATE_KEY, PersistenceError, SessionStore

__all__ = [
    "CandidateNotFoundError",
    "InvalidStoreActionError",
    "PersistenceError",
    "STATE_KEY",
    "SessionStore",
    "reduce",
]
