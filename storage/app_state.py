"""Pure reducer over the persisted AppState snapshot."""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel

from interview_session.models import STATUS_ORDER, AppState, Candidate, TabLiteral


class CandidateNotFoundError(KeyError):  # Unknown candidate id
    pass


class InvalidStoreActionError(ValueError):  # Action not allowed for the current snapshot
    pass


class UpsertCandidate(BaseModel):
    candidate: Candidate


class SetActive(BaseModel):
    candidate_id: Optional[str] = None


class SetTab(BaseModel):
    tab: TabLiteral


class DiscardCandidate(BaseModel):
    candidate_id: str


StoreAction = Union[UpsertCandidate, SetActive, SetTab, DiscardCandidate]


def reduce(state: AppState, action: StoreAction) -> AppState:
    """Return the next snapshot; ``state`` itself is never modified."""

    if isinstance(action, UpsertCandidate):
        incoming = action.candidate
        existing = state.candidates.get(incoming.id)
        if existing is not None and STATUS_ORDER[incoming.status] < STATUS_ORDER[existing.status]:
            raise InvalidStoreActionError(
                f"Candidate {incoming.id} cannot move from {existing.status} to {incoming.status}"
            )
        candidates = dict(state.candidates)
        candidates[incoming.id] = incoming.model_copy(deep=True)
        return state.model_copy(update={"candidates": candidates})

    if isinstance(action, SetActive):
        if action.candidate_id is not None and action.candidate_id not in state.candidates:
            raise CandidateNotFoundError(action.candidate_id)
        return state.model_copy(update={"active_candidate_id": action.candidate_id})

    if isinstance(action, SetTab):
        return state.model_copy(update={"active_tab": action.tab})

    if isinstance(action, DiscardCandidate):
        candidate = state.candidates.get(action.candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(action.candidate_id)
        if candidate.status == "Completed" or candidate.has_progress():
            raise InvalidStoreActionError(f"Candidate {candidate.id} already has progress and cannot be discarded")
        candidates = {key: value for key, value in state.candidates.items() if key != action.candidate_id}
        active = None if state.active_candidate_id == action.candidate_id else state.active_candidate_id
        return state.model_copy(update={"candidates": candidates, "active_candidate_id": active})

    raise TypeError(f"Unsupported store action: {type(action).__name__}")


__all__ = [
    "CandidateNotFoundError",
    "DiscardCandidate",
    "InvalidStoreActionError",
    "SetActive",
    "SetTab",
    "StoreAction",
    "UpsertCandidate",
    "reduce",
]
