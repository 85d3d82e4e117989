from __future__ import annotations  # LLM-backed evaluator client

import logging
from pathlib import Path
from textwrap import dedent
from typing import Dict, Optional, Sequence

from pydantic import BaseModel, Field

from config import LlmRoute, load_routes
from config.settings import settings
from llm_gateway import HttpClient, LlmGatewayError, call

from .base import (
    NO_ANSWER_FEEDBACK,
    SUMMARY_FALLBACK,
    AnswerEvaluation,
    ContactInfo,
    Difficulty,
    EvaluatorError,
    GeneratedQuestion,
    QuestionFailure,
    QuestionResult,
    TranscriptItem,
)

logger = logging.getLogger(__name__)

EXTRACT_TARGET = "evaluator.extract_contact_info"
QUESTION_TARGET = "evaluator.generate_question"
EVALUATE_TARGET = "evaluator.evaluate_answer"
SUMMARY_TARGET = "evaluator.summarize_session"
TARGETS = (EXTRACT_TARGET, QUESTION_TARGET, EVALUATE_TARGET, SUMMARY_TARGET)


class ContactDraft(BaseModel):  # Raw extraction reply
    name: Optional[str] = Field(default=None, description="Candidate's full name")
    email: Optional[str] = Field(default=None, description="Candidate's email address")
    phone: Optional[str] = Field(default=None, description="Candidate's phone number")


class QuestionDraft(BaseModel):  # Raw question reply
    question: str = Field(min_length=1)


class EvaluationDraft(BaseModel):  # Raw scoring reply
    score: float = Field(description="Score from 0 to 100")
    feedback: str


class SummaryDraft(BaseModel):  # Raw summary reply
    summary: str = Field(min_length=1)


class LlmEvaluatorClient:  # Evaluator capability over the chat-completions gateway
    def __init__(
        self,
        routes: Dict[str, LlmRoute],
        *,
        role: Optional[str] = None,
        http_client: Optional[HttpClient] = None,
    ) -> None:
        missing = [target for target in TARGETS if target not in routes]
        if missing:
            raise KeyError(f"Routes missing for {', '.join(missing)}")
        self._routes = routes
        self._role = role or settings.INTERVIEW_ROLE
        self._http = http_client

    @classmethod
    def from_config(cls, config_path: Path, **kwargs) -> "LlmEvaluatorClient":
        return cls(load_routes(config_path, TARGETS), **kwargs)

    def extract_contact_info(self, resume_text: str) -> ContactInfo:
        try:
            draft = call(_extract_task(resume_text), ContactDraft, cfg=self._routes[EXTRACT_TARGET], client=self._http)
        except LlmGatewayError as exc:
            logger.error("Error extracting info from resume: %s", exc)
            return ContactInfo()
        return ContactInfo(name=_clean(draft.name), email=_clean(draft.email), phone=_clean(draft.phone))

    def generate_question(self, difficulty: Difficulty, exclude: Sequence[str]) -> QuestionResult:
        try:
            draft = call(
                _question_task(self._role, difficulty, exclude),
                QuestionDraft,
                cfg=self._routes[QUESTION_TARGET],
                client=self._http,
            )
        except LlmGatewayError as exc:
            logger.error("Error generating question: %s", exc)
            return QuestionFailure(reason=str(exc))
        text = draft.question.strip()
        if not text:
            return QuestionFailure(reason="empty question")
        seen = {_fingerprint(item) for item in exclude}
        if _fingerprint(text) in seen:
            logger.warning("Generated question repeats an earlier one: %s", text)
            return QuestionFailure(reason="duplicate question")
        return GeneratedQuestion(text=text)

    def evaluate_answer(self, question: str, answer: str) -> AnswerEvaluation:
        if not answer.strip():
            return AnswerEvaluation(score=0, feedback=NO_ANSWER_FEEDBACK)
        try:
            draft = call(
                _evaluation_task(question, answer),
                EvaluationDraft,
                cfg=self._routes[EVALUATE_TARGET],
                client=self._http,
            )
        except LlmGatewayError as exc:
            logger.error("Error evaluating answer: %s", exc)
            raise EvaluatorError("answer evaluation failed") from exc
        score = min(100, max(0, int(round(draft.score))))
        return AnswerEvaluation(score=score, feedback=draft.feedback.strip())

    def summarize_session(self, candidate_name: str, questions: Sequence[TranscriptItem]) -> str:
        try:
            draft = call(
                _summary_task(candidate_name, questions),
                SummaryDraft,
                cfg=self._routes[SUMMARY_TARGET],
                client=self._http,
            )
        except LlmGatewayError as exc:
            logger.error("Error summarizing interview: %s", exc)
            return SUMMARY_FALLBACK
        return draft.summary.strip() or SUMMARY_FALLBACK


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped or stripped.lower() in {"null", "none", "n/a"}:
        return None
    return stripped


def _fingerprint(text: str) -> str:
    return " ".join(text.lower().split())


EXTRACT_PROMPT = dedent(
    """
    You are an expert HR assistant. Extract the full name, email address, and phone number from the resume below.
    Return a JSON object with the keys "name", "email" and "phone". Use null for any value that is not present.

    Resume text:
    {resume_text}
    """
).strip()

QUESTION_PROMPT = dedent(
    """
    You are an expert technical interviewer for a {role} role.
    Generate one interview question with {difficulty} difficulty.
    The question must be a single, clear question that can be answered in a short paragraph.
    Do not repeat or paraphrase any of these previously asked questions:
    {asked}

    Return a JSON object with the key "question".
    """
).strip()

EVALUATION_PROMPT = dedent(
    """
    You are an expert technical interviewer. Evaluate the candidate's answer to the question below.
    Give a score from 0 to 100 and brief feedback on the answer's correctness, clarity and depth.

    Question: {question}
    Answer: {answer}

    Return a JSON object with the keys "score" (number) and "feedback" (string).
    """
).strip()

SUMMARY_PROMPT = dedent(
    """
    You are an expert HR manager. Based on the interview transcript below, write a concise summary of the
    candidate's performance that highlights strengths and weaknesses. The candidate's name is {name}.

    Transcript:
    {transcript}

    Return a JSON object with the key "summary".
    """
).strip()


def _extract_task(resume_text: str) -> str:
    return EXTRACT_PROMPT.format(resume_text=resume_text)


def _question_task(role: str, difficulty: Difficulty, exclude: Sequence[str]) -> str:
    asked = "\n".join(f"- {item}" for item in exclude) or "(none yet)"
    return QUESTION_PROMPT.format(role=role, difficulty=difficulty, asked=asked)


def _evaluation_task(question: str, answer: str) -> str:
    return EVALUATION_PROMPT.format(question=question, answer=answer)


def _summary_task(candidate_name: str, questions: Sequence[TranscriptItem]) -> str:
    transcript = "\n\n".join(
        f"Q ({item.difficulty}): {item.text}\n"
        f"A: {item.answer or 'No answer'}\n"
        f"Score: {item.score if item.score is not None else 'n/a'}/100\n"
        f"Feedback: {item.feedback}"
        for item in questions
    ) or "(no questions were answered)"
    return SUMMARY_PROMPT.format(name=candidate_name, transcript=transcript)
