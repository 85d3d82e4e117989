"""Interview session state machine and per-question timer."""
from .engine import (
    EngineConfig,
    InterviewSessionEngine,
    InvalidTransitionError,
    SessionUpdate,
    compute_final_score,
    round_half_up,
)
from .models import INTERVIEW_FLOW, TOTAL_QUESTIONS, AppState, Candidate, InterviewStage, Message, Question
from .timer import Countdown, QuestionTimer, ThreadTicker, Ticker, TimerSnapshot

__all__ = [
    "AppState",
    "Candidate",
    "Countdown",
    "EngineConfig",
    "INTERVIEW_FLOW",
    "InterviewSessionEngine",
    "InterviewStage",
    "InvalidTransitionError",
    "Message",
    "Question",
    "QuestionTimer",
    "SessionUpdate",
    "TOTAL_QUESTIONS",
    "ThreadTicker",
    "Ticker",
    "TimerSnapshot",
    "compute_final_score",
    "round_half_up",
]
