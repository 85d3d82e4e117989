"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from dashboard import CandidateRow, SortConfig
from interview_session.models import Candidate, CamelModel, TabLiteral
from interview_session.timer import TimerSnapshot


class TabReq(CamelModel):
    tab: TabLiteral


class AnswerReq(CamelModel):
    text: str = ""


class PauseReq(CamelModel):
    reason: str = "manual"


class VisibilityReq(CamelModel):
    visible: bool


class TimerView(CamelModel):
    time_left: int = 0
    running: bool = False
    paused: bool = False
    pause_reason: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: TimerSnapshot) -> "TimerView":
        return cls(**snapshot.model_dump())


class SessionResp(CamelModel):
    candidate: Candidate
    timer: TimerView = Field(default_factory=TimerView)


class UnfinishedResp(CamelModel):
    candidate: Optional[Candidate] = None


class DashboardResp(CamelModel):
    search: str = ""
    sort: SortConfig = Field(default_factory=SortConfig)
    candidates: List[CandidateRow] = Field(default_factory=list)


__all__ = [
    "AnswerReq",
    "DashboardResp",
    "PauseReq",
    "SessionResp",
    "TabReq",
    "TimerView",
    "UnfinishedResp",
    "VisibilityReq",
]
