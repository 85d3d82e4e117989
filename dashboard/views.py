from __future__ import annotations  # Read-only dashboard projections over completed sessions

from typing import List, Literal, Optional

from pydantic import BaseModel

from evaluator_client import NO_ANSWER_FEEDBACK
from interview_session.models import AppState, Candidate, CamelModel
from storage import CandidateNotFoundError

SortKey = Literal["name", "email", "finalScore"]
SortDirection = Literal["asc", "desc"]
ScoreBand = Literal["strong", "average", "weak"]

STRONG_SCORE = 70
AVERAGE_SCORE = 50
PASS_SCORE = 50
MISSING = "N/A"


class SortConfig(BaseModel):  # Active column sort
    key: SortKey = "finalScore"
    direction: SortDirection = "desc"


class CandidateRow(CamelModel):  # One dashboard table row
    id: str
    name: str
    email: str
    final_score: Optional[int] = None
    score_band: ScoreBand
    summary: str = ""


class TranscriptEntry(CamelModel):  # Question block in the detail view
    number: int
    difficulty: str
    question: str
    answer: str
    score: Optional[int] = None
    feedback: str = ""
    passed: bool = False


class CandidateDetail(CamelModel):  # Detail view of one completed session
    id: str
    name: str
    email: str
    phone: str
    final_score: Optional[int] = None
    score_band: ScoreBand
    summary: str = ""
    transcript: List[TranscriptEntry]


def score_band(score: Optional[int]) -> ScoreBand:
    value = score if score is not None else -1
    if value >= STRONG_SCORE:
        return "strong"
    if value >= AVERAGE_SCORE:
        return "average"
    return "weak"


def next_sort(current: SortConfig, key: SortKey) -> SortConfig:
    """Clicking the active ascending column flips it; any other click sorts ascending."""
    if current.key == key and current.direction == "asc":
        return SortConfig(key=key, direction="desc")
    return SortConfig(key=key, direction="asc")


def _matches(candidate: Candidate, needle: str) -> bool:
    if not needle:
        return True
    return any(needle in (value or "").lower() for value in (candidate.name, candidate.email))


def _sort_value(candidate: Candidate, key: SortKey):
    # Missing values sort below everything else
    if key == "finalScore":
        return (0, -1) if candidate.final_score is None else (1, candidate.final_score)
    value = getattr(candidate, key)
    return (0, "") if not value else (1, value)


def _row(candidate: Candidate) -> CandidateRow:
    return CandidateRow(
        id=candidate.id,
        name=candidate.name or MISSING,
        email=candidate.email or MISSING,
        final_score=candidate.final_score,
        score_band=score_band(candidate.final_score),
        summary=candidate.summary,
    )


def list_completed_sessions(
    state: AppState,
    search: str = "",
    sort: Optional[SortConfig] = None,
) -> List[CandidateRow]:
    sort = sort or SortConfig()
    needle = search.strip().lower()
    matches = [
        candidate
        for candidate in state.candidates.values()
        if candidate.status == "Completed" and _matches(candidate, needle)
    ]
    matches.sort(key=lambda candidate: _sort_value(candidate, sort.key), reverse=sort.direction == "desc")
    return [_row(candidate) for candidate in matches]


def candidate_detail(state: AppState, candidate_id: str) -> CandidateDetail:
    candidate = state.candidates.get(candidate_id)
    if candidate is None or candidate.status != "Completed":
        raise CandidateNotFoundError(candidate_id)
    transcript = [
        TranscriptEntry(
            number=index,
            difficulty=question.difficulty,
            question=question.text,
            answer=question.answer or NO_ANSWER_FEEDBACK,
            score=question.score,
            feedback=question.feedback,
            passed=(question.score or 0) >= PASS_SCORE,
        )
        for index, question in enumerate(candidate.questions, start=1)
    ]
    return CandidateDetail(
        id=candidate.id,
        name=candidate.name or MISSING,
        email=candidate.email or MISSING,
        phone=candidate.phone or MISSING,
        final_score=candidate.final_score,
        score_band=score_band(candidate.final_score),
        summary=candidate.summary,
        transcript=transcript,
    )


__all__ = [
    "CandidateDetail",
    "CandidateRow",
    "SortConfig",
    "SortDirection",
    "SortKey",
    "TranscriptEntry",
    "candidate_detail",
    "list_completed_sessions",
    "next_sort",
    "score_band",
]
