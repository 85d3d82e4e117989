from __future__ import annotations  # Persisted AppState store backed by SQLite

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from interview_session.models import AppState, Candidate, TabLiteral

from .app_state import (
    CandidateNotFoundError,
    DiscardCandidate,
    SetActive,
    SetTab,
    StoreAction,
    UpsertCandidate,
    reduce,
)
from .migrate import migrate
from .sqlite import get_conn

logger = logging.getLogger(__name__)

STATE_KEY = "interview-app-state"


class PersistenceError(RuntimeError):  # Durable write or load failed
    pass


class SessionStore:
    """Whole-snapshot store: every operation reads, reduces and rewrites one row.

    The in-memory snapshot is replaced only after the write commits, so a failed
    write leaves the previous state visible.
    """

    def __init__(self, db_path: Optional[str] = None, *, storage_key: str = STATE_KEY) -> None:
        self._db_path = db_path
        self._key = storage_key
        self._lock = threading.RLock()
        self._state: Optional[AppState] = None

    # --- reads -------------------------------------------------------------
    def state(self) -> AppState:
        with self._lock:
            return self._load().model_copy(deep=True)

    def get(self, candidate_id: str) -> Candidate:
        with self._lock:
            candidate = self._load().candidates.get(candidate_id)
            if candidate is None:
                raise CandidateNotFoundError(candidate_id)
            return candidate.model_copy(deep=True)

    def find(self, candidate_id: str) -> Optional[Candidate]:
        with self._lock:
            candidate = self._load().candidates.get(candidate_id)
            return candidate.model_copy(deep=True) if candidate is not None else None

    def list_completed(self) -> List[Candidate]:
        with self._lock:
            return [
                candidate.model_copy(deep=True)
                for candidate in self._load().candidates.values()
                if candidate.status == "Completed"
            ]

    def find_unfinished(self) -> Optional[Candidate]:
        """Candidate still InProgress, preferring the active one."""
        with self._lock:
            state = self._load()
            active = state.candidates.get(state.active_candidate_id or "")
            if active is not None and active.status == "InProgress":
                return active.model_copy(deep=True)
            for candidate in state.candidates.values():
                if candidate.status == "InProgress":
                    return candidate.model_copy(deep=True)
            return None

    # --- writes ------------------------------------------------------------
    def upsert(self, candidate: Candidate) -> AppState:
        return self._dispatch(UpsertCandidate(candidate=candidate))

    def set_active(self, candidate_id: Optional[str]) -> AppState:
        return self._dispatch(SetActive(candidate_id=candidate_id))

    def set_tab(self, tab: TabLiteral) -> AppState:
        return self._dispatch(SetTab(tab=tab))

    def discard_in_progress(self, candidate_id: str) -> AppState:
        return self._dispatch(DiscardCandidate(candidate_id=candidate_id))

    def _dispatch(self, action: StoreAction) -> AppState:
        with self._lock:
            next_state = reduce(self._load(), action)
            self._commit(next_state)
            return next_state.model_copy(deep=True)

    # --- persistence -------------------------------------------------------
    def _load(self) -> AppState:
        if self._state is not None:
            return self._state
        try:
            migrate(self._db_path)
            with get_conn(self._db_path) as conn:
                row = conn.execute(
                    "SELECT payload FROM app_state WHERE storage_key = ?",
                    (self._key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Unable to read application state: {exc}") from exc

        if row is None:
            self._state = AppState()
        else:
            try:
                self._state = AppState.model_validate_json(row[0])
            except ValidationError as exc:
                raise PersistenceError("Stored application state is corrupt") from exc
        return self._state

    def _commit(self, state: AppState) -> None:
        payload = state.model_dump_json(by_alias=True)
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            with get_conn(self._db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO app_state (storage_key, payload, updated_at) VALUES (?, ?, ?)",
                    (self._key, payload, updated_at),
                )
        except sqlite3.Error as exc:
            logger.error("Persisting application state failed: %s", exc)
            raise PersistenceError(f"Unable to persist application state: {exc}") from exc
        self._state = state


__all__ = ["PersistenceError", "STATE_KEY", "SessionStore"]
