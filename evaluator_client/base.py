"""Typed capability boundary for the text-generation service."""
from __future__ import annotations

from typing import Literal, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, Field

Difficulty = Literal["Easy", "Medium", "Hard"]

NO_ANSWER_FEEDBACK = "No answer provided."
EVALUATION_FAILED_FEEDBACK = "AI evaluation failed."
SUMMARY_FALLBACK = "Failed to generate interview summary."


class EvaluatorError(RuntimeError):  # Evaluator produced no usable result
    pass


class ContactInfo(BaseModel):  # Contact details found in a resume
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class GeneratedQuestion(BaseModel):  # Successful question generation
    text: str


class QuestionFailure(BaseModel):  # No question could be produced
    reason: str


QuestionResult = Union[GeneratedQuestion, QuestionFailure]


class AnswerEvaluation(BaseModel):  # Score and feedback for one answer
    score: int = Field(ge=0, le=100)
    feedback: str


class TranscriptItem(BaseModel):  # Question/answer pair passed to the summarizer
    text: str
    difficulty: Difficulty
    answer: str = ""
    score: Optional[int] = None
    feedback: str = ""


class EvaluatorClient(Protocol):
    def extract_contact_info(self, resume_text: str) -> ContactInfo:
        """Return the contact triple; all fields None on failure. Never raises."""
        ...

    def generate_question(self, difficulty: Difficulty, exclude: Sequence[str]) -> QuestionResult:
        """Return a question not present in ``exclude`` or a failure marker."""
        ...

    def evaluate_answer(self, question: str, answer: str) -> AnswerEvaluation:
        """Score an answer; raises :class:`EvaluatorError` when the service fails."""
        ...

    def summarize_session(self, candidate_name: str, questions: Sequence[TranscriptItem]) -> str:
        """Return a performance summary or :data:`SUMMARY_FALLBACK`. Never raises."""
        ...
