from __future__ import annotations  # Interview session domain models

import time
from typing import Dict, List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from evaluator_client import Difficulty

StatusLiteral = Literal["PendingInfo", "InfoCollected", "InProgress", "Completed"]
SenderLiteral = Literal["ai", "user"]
TabLiteral = Literal["interviewee", "interviewer"]
ContactField = Literal["name", "email", "phone"]

STATUS_ORDER: Dict[str, int] = {"PendingInfo": 0, "InfoCollected": 1, "InProgress": 2, "Completed": 3}
CONTACT_FIELDS: Tuple[ContactField, ...] = ("name", "email", "phone")


class CamelModel(BaseModel):  # Persisted with camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InterviewStage(CamelModel):  # One position in the interview flow
    difficulty: Difficulty
    time_limit_seconds: int = Field(gt=0)


INTERVIEW_FLOW: Tuple[InterviewStage, ...] = (
    InterviewStage(difficulty="Easy", time_limit_seconds=20),
    InterviewStage(difficulty="Easy", time_limit_seconds=20),
    InterviewStage(difficulty="Medium", time_limit_seconds=60),
    InterviewStage(difficulty="Medium", time_limit_seconds=60),
    InterviewStage(difficulty="Hard", time_limit_seconds=120),
    InterviewStage(difficulty="Hard", time_limit_seconds=120),
)

TOTAL_QUESTIONS = len(INTERVIEW_FLOW)


def new_id(prefix: str = "") -> str:
    return f"{prefix}{time.time_ns()}_{uuid4().hex[:6]}"


class Question(CamelModel):  # Asked question and, once submitted, its outcome
    id: str = Field(default_factory=new_id)
    text: str
    difficulty: Difficulty
    time_limit_seconds: int
    answer: str = ""
    score: Optional[int] = Field(default=None, ge=0, le=100)
    feedback: str = ""

    @property
    def answered(self) -> bool:
        return self.score is not None


class Message(CamelModel):  # Chat log entry
    id: str = Field(default_factory=lambda: uuid4().hex)
    sender: SenderLiteral
    text: str
    is_info: bool = False


class Candidate(CamelModel):  # One interview attempt
    id: str = Field(default_factory=lambda: new_id("cand_"))
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    resume_text: str = ""
    status: StatusLiteral = "InfoCollected"
    questions: List[Question] = Field(default_factory=list)
    current_question_index: int = Field(default=0, ge=0)
    final_score: Optional[int] = Field(default=None, ge=0, le=100)
    summary: str = ""
    chat_history: List[Message] = Field(default_factory=list)

    def missing_fields(self) -> List[ContactField]:
        return [field for field in CONTACT_FIELDS if not getattr(self, field)]

    def pending_question(self) -> Optional[Question]:
        """Question awaiting an answer, if one has been asked."""
        if self.status != "InProgress":
            return None
        if self.current_question_index < len(self.questions):
            question = self.questions[self.current_question_index]
            if not question.answered:
                return question
        return None

    def has_progress(self) -> bool:
        return any(question.answered for question in self.questions)


class AppState(CamelModel):  # Process-wide persisted state
    candidates: Dict[str, Candidate] = Field(default_factory=dict)
    active_candidate_id: Optional[str] = None
    active_tab: TabLiteral = "interviewee"


__all__ = [
    "AppState",
    "Candidate",
    "CONTACT_FIELDS",
    "ContactField",
    "INTERVIEW_FLOW",
    "InterviewStage",
    "Message",
    "Question",
    "STATUS_ORDER",
    "StatusLiteral",
    "TOTAL_QUESTIONS",
    "TabLiteral",
    "new_id",
]
