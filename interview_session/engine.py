from __future__ import annotations  # Interview session state machine

import logging
import math
import time
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel, Field

from evaluator_client import (
    EVALUATION_FAILED_FEEDBACK,
    NO_ANSWER_FEEDBACK,
    SUMMARY_FALLBACK,
    ContactInfo,
    EvaluatorClient,
    GeneratedQuestion,
    TranscriptItem,
)
from observability import log_event

from .models import (
    INTERVIEW_FLOW,
    STATUS_ORDER,
    Candidate,
    InterviewStage,
    Message,
    Question,
    StatusLiteral,
)

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Hello! I've processed your resume. Let's confirm your details."
READY_TEXT = "Great, I have all your information. We'll now begin the interview. You'll have a specific time for each question."
RETRY_TEXT = "I had trouble preparing the next question. Trying again..."
GENERATION_FAILED_TEXT = (
    "Sorry, I couldn't generate the next question. The interview has been ended and your answers so far were saved."
)
TERMINATED_SUMMARY = "Interview terminated early: the next question could not be generated."
EVALUATING_TEXT = "Evaluating..."
COMPUTING_TEXT = (
    "Thank you for completing the interview. I'm now calculating your final score and generating a summary. One moment..."
)
ENDED_SUMMARY = "Interview ended prematurely by the candidate."
ENDED_TEXT = "The interview was ended before all questions were answered."
PLACEHOLDER_SUFFIX = "-loader"

ProgressHook = Callable[[Candidate], None]


class InvalidTransitionError(ValueError):  # Raised when a status would move backward
    pass


class EngineConfig(BaseModel):  # Retry tuning for question generation
    question_retry_limit: int = Field(default=2, ge=0)
    retry_delay_seconds: float = Field(default=1.5, ge=0.0)


class SessionUpdate(BaseModel):  # Outcome of one reducer step
    candidate: Candidate
    messages: List[Message] = Field(default_factory=list)
    question_started: Optional[Question] = None
    release_active: bool = False
    changed: bool = True


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_final_score(questions: Sequence[Question], total: int) -> int:
    """Average over the whole flow length, so unanswered questions count as zero."""
    if total <= 0:
        return 0
    scored = sum(question.score for question in questions if question.score is not None)
    return round_half_up(scored / total)


def transition(candidate: Candidate, status: StatusLiteral) -> None:
    if STATUS_ORDER[status] < STATUS_ORDER[candidate.status]:
        raise InvalidTransitionError(f"{candidate.id}: {candidate.status} -> {status}")
    if status != candidate.status:
        log_event("status_changed", candidate.id, outcome=status, previous=candidate.status)
    candidate.status = status


def _info(text: str) -> Message:
    return Message(sender="ai", text=text, is_info=True)


def _placeholder(text: str) -> Message:
    message = _info(text)
    message.id = message.id + PLACEHOLDER_SUFFIX
    return message


def _drop_placeholders(candidate: Candidate) -> None:
    candidate.chat_history = [msg for msg in candidate.chat_history if not msg.id.endswith(PLACEHOLDER_SUFFIX)]


class _Step:  # Accumulates messages emitted during one step
    def __init__(self, candidate: Candidate) -> None:
        self.candidate = candidate
        self.messages: List[Message] = []
        self.question_started: Optional[Question] = None
        self.release_active = False

    def emit(self, message: Message) -> None:
        self.candidate.chat_history.append(message)
        self.messages.append(message)

    def result(self) -> SessionUpdate:
        return SessionUpdate(
            candidate=self.candidate,
            messages=self.messages,
            question_started=self.question_started,
            release_active=self.release_active,
        )


class InterviewSessionEngine:  # Drives one candidate through the flow
    def __init__(
        self,
        evaluator: EvaluatorClient,
        *,
        flow: Sequence[InterviewStage] = INTERVIEW_FLOW,
        config: Optional[EngineConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not flow:
            raise ValueError("Interview flow must contain at least one stage")
        self._evaluator = evaluator
        self._flow = tuple(flow)
        self._config = config or EngineConfig()
        self._sleep = sleep

    @property
    def total_questions(self) -> int:
        return len(self._flow)

    def create_candidate(self, resume_text: str, contact: ContactInfo) -> Candidate:
        candidate = Candidate(
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            resume_text=resume_text,
            status="InfoCollected",
        )
        candidate.chat_history.append(Message(sender="ai", text=WELCOME_TEXT))
        log_event("candidate_created", candidate.id, missing=candidate.missing_fields())
        return candidate

    def advance(self, candidate: Candidate, *, on_progress: Optional[ProgressHook] = None) -> SessionUpdate:
        step = _Step(candidate.model_copy(deep=True))
        self._advance(step, on_progress)
        return step.result()

    def submit(self, candidate: Candidate, text: str, *, on_progress: Optional[ProgressHook] = None) -> SessionUpdate:
        answer = text.strip()
        if candidate.status == "Completed":
            return SessionUpdate(candidate=candidate, changed=False)
        if not answer and candidate.status != "InProgress":
            return SessionUpdate(candidate=candidate, changed=False)
        if candidate.status == "InProgress" and candidate.pending_question() is None:
            return SessionUpdate(candidate=candidate, changed=False)

        step = _Step(candidate.model_copy(deep=True))
        work = step.candidate
        if work.status == "InfoCollected":
            missing = work.missing_fields()
            if missing:
                setattr(work, missing[0], answer)
            step.emit(Message(sender="user", text=answer))
        elif work.status == "InProgress":
            self._answer_current(step, answer, on_progress)
        self._advance(step, on_progress)
        return step.result()

    def force_finalize(self, candidate: Candidate, *, summary: str = ENDED_SUMMARY) -> SessionUpdate:
        if candidate.status == "Completed":
            return SessionUpdate(candidate=candidate, changed=False)
        step = _Step(candidate.model_copy(deep=True))
        work = step.candidate
        _drop_placeholders(work)
        transition(work, "Completed")
        work.final_score = compute_final_score(work.questions, self.total_questions)
        work.summary = summary
        step.emit(_info(f"{ENDED_TEXT}\n\n**Final Score:** {work.final_score}%"))
        step.release_active = True
        log_event("session_ended", work.id, outcome="abandoned", score=work.final_score)
        return step.result()

    def _advance(self, step: _Step, on_progress: Optional[ProgressHook]) -> None:
        work = step.candidate
        if work.status in ("PendingInfo", "InfoCollected"):
            missing = work.missing_fields()
            if missing:
                step.emit(_info(f"Thanks. I see we're missing your {', '.join(missing)}. What is your {missing[0]}?"))
                return
            step.emit(_info(READY_TEXT))
            transition(work, "InProgress")

        if work.status != "InProgress":
            return
        index = work.current_question_index
        if len(work.questions) > index:
            return
        if index < self.total_questions:
            self._ask(step, index)
        else:
            self._complete(step, on_progress)

    def _ask(self, step: _Step, index: int) -> None:
        work = step.candidate
        stage = self._flow[index]
        exclude = [question.text for question in work.questions]
        attempts = self._config.question_retry_limit + 1
        outcome = None
        for attempt in range(attempts):
            outcome = self._evaluator.generate_question(stage.difficulty, exclude)
            if isinstance(outcome, GeneratedQuestion):
                break
            log_event(
                "question_failed",
                work.id,
                level=logging.WARNING,
                attempt=attempt + 1,
                reason=getattr(outcome, "reason", ""),
            )
            if attempt < attempts - 1:
                step.emit(_info(RETRY_TEXT))
                self._sleep(self._config.retry_delay_seconds)

        if not isinstance(outcome, GeneratedQuestion):
            transition(work, "Completed")
            work.final_score = compute_final_score(work.questions, self.total_questions)
            work.summary = TERMINATED_SUMMARY
            step.emit(_info(GENERATION_FAILED_TEXT))
            step.release_active = True
            log_event("session_ended", work.id, outcome="terminated", score=work.final_score)
            return

        question = Question(
            text=outcome.text,
            difficulty=stage.difficulty,
            time_limit_seconds=stage.time_limit_seconds,
        )
        work.questions.append(question)
        step.emit(
            Message(
                sender="ai",
                text=f"Question {index + 1}/{self.total_questions} ({stage.difficulty}):\n\n{question.text}",
            )
        )
        step.question_started = question
        log_event("question_asked", work.id, index=index, difficulty=stage.difficulty)

    def _answer_current(self, step: _Step, answer: str, on_progress: Optional[ProgressHook]) -> None:
        work = step.candidate
        question = work.questions[work.current_question_index]
        step.emit(Message(sender="user", text=answer))
        question.answer = answer

        if not answer:
            score, feedback = 0, NO_ANSWER_FEEDBACK
        else:
            work.chat_history.append(_placeholder(EVALUATING_TEXT))
            if on_progress is not None:
                on_progress(work.model_copy(deep=True))
            try:
                evaluation = self._evaluator.evaluate_answer(question.text, answer)
                score, feedback = evaluation.score, evaluation.feedback
            except Exception as exc:  # noqa: BLE001
                logger.warning("Answer evaluation failed for %s: %s", work.id, exc)
                score, feedback = 0, EVALUATION_FAILED_FEEDBACK
            _drop_placeholders(work)

        question.score = score
        question.feedback = feedback
        step.emit(_info(f"**Score:** {score}/100\n**Feedback:** {feedback}"))
        work.current_question_index += 1
        log_event("answer_scored", work.id, index=work.current_question_index - 1, score=score)

    def _complete(self, step: _Step, on_progress: Optional[ProgressHook]) -> None:
        work = step.candidate
        transition(work, "Completed")
        work.final_score = compute_final_score(work.questions, self.total_questions)
        work.chat_history.append(_placeholder(COMPUTING_TEXT))
        if on_progress is not None:
            on_progress(work.model_copy(deep=True))

        name = work.name or "Candidate"
        transcript = [
            TranscriptItem(
                text=question.text,
                difficulty=question.difficulty,
                answer=question.answer,
                score=question.score,
                feedback=question.feedback,
            )
            for question in work.questions
        ]
        try:
            summary = self._evaluator.summarize_session(name, transcript)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Summary generation failed for %s: %s", work.id, exc)
            summary = SUMMARY_FALLBACK
        work.summary = summary or SUMMARY_FALLBACK
        _drop_placeholders(work)
        step.emit(
            _info(
                f"**Interview Complete!**\n\n**Final Score:** {work.final_score}%\n\n**Summary:**\n{work.summary}"
            )
        )
        step.release_active = True
        log_event("session_ended", work.id, outcome="completed", score=work.final_score)
