from __future__ import annotations  # Wires the session engine, per-question timers and the store

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Set

from config.settings import settings
from evaluator_client import EvaluatorClient, LlmEvaluatorClient
from observability import log_event, span
from resume_extraction import DocumentResumeExtractor, ResumeTextExtractor, detect_resume_kind
from storage import SessionStore

from .engine import EngineConfig, InterviewSessionEngine, SessionUpdate
from .models import AppState, Candidate, Message, TabLiteral
from .timer import QuestionTimer, ThreadTicker, Ticker, TimerSnapshot

logger = logging.getLogger(__name__)

TickerFactory = Callable[[], Ticker]


class SessionBusyError(RuntimeError):  # A submit for this candidate is still in flight
    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate {candidate_id} is still being evaluated")
        self.candidate_id = candidate_id


class SessionActiveError(RuntimeError):  # Another interview is still open
    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate {candidate_id} has an unfinished interview; end it before uploading a new resume")
        self.candidate_id = candidate_id


class InterviewController:
    """Runs controller operations for one candidate at a time.

    Only one engine call per candidate may be in flight. Results computed for a
    candidate that was ended or discarded meanwhile are dropped.
    """

    def __init__(
        self,
        store: SessionStore,
        engine: InterviewSessionEngine,
        evaluator: EvaluatorClient,
        *,
        extractor: Optional[ResumeTextExtractor] = None,
        ticker_factory: Optional[TickerFactory] = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._evaluator = evaluator
        self._extractor = extractor or DocumentResumeExtractor()
        self._ticker_factory = ticker_factory or (lambda: ThreadTicker(settings.TIMER_TICK_SECONDS))
        self._guard = threading.Lock()
        self._intake = threading.Lock()
        self._busy: Set[str] = set()
        self._abandoned: Set[str] = set()
        self._timers: Dict[str, QuestionTimer] = {}

    @property
    def store(self) -> SessionStore:
        return self._store

    # --- app state -----------------------------------------------------------
    def state(self) -> AppState:
        return self._store.state()

    def set_tab(self, tab: TabLiteral) -> AppState:
        return self._store.set_tab(tab)

    def candidate(self, candidate_id: str) -> Candidate:
        return self._store.get(candidate_id)

    def timer_snapshot(self, candidate_id: str) -> TimerSnapshot:
        timer = self._timers.get(candidate_id)
        return timer.snapshot() if timer is not None else TimerSnapshot()

    # --- interview flow --------------------------------------------------------
    def start_from_resume(self, filename: str, content_type: Optional[str], data: bytes) -> Candidate:
        """Create a candidate from an uploaded resume and make it active.

        Raises :class:`SessionActiveError` while any other interview is unfinished.
        """

        detect_resume_kind(filename, content_type)
        with self._intake:
            open_session = self._open_session()
            if open_session is not None:
                raise SessionActiveError(open_session.id)
            resume_text = self._extractor.extract(filename, content_type, data)
            contact = self._evaluator.extract_contact_info(resume_text)
            candidate = self._engine.create_candidate(resume_text, contact)
            self._store.upsert(candidate)
            self._store.set_active(candidate.id)
        with self._single_flight(candidate.id):
            update = self._engine.advance(candidate, on_progress=self._checkpoint)
            return self._apply(update)

    def submit(self, candidate_id: str, text: str) -> Candidate:
        with self._single_flight(candidate_id):
            candidate = self._store.get(candidate_id)
            if candidate.pending_question() is not None:
                self._timer(candidate_id).stop()
            with span(candidate_id, "submit"):
                update = self._engine.submit(candidate, text, on_progress=self._checkpoint)
            return self._apply(update)

    def pause(self, candidate_id: str, reason: str = "manual") -> TimerSnapshot:
        """Pause the countdown, or hold the pause for the next question while none runs."""
        candidate = self._store.get(candidate_id)
        if candidate.status == "Completed":
            return self.timer_snapshot(candidate_id)
        if self._timer(candidate_id).pause(reason):
            log_event("timer_paused", candidate_id, reason=reason)
        return self.timer_snapshot(candidate_id)

    def visibility(self, candidate_id: str, visible: bool) -> TimerSnapshot:
        """Losing visibility pauses; regaining it leaves resuming to the candidate."""
        if not visible:
            return self.pause(candidate_id, reason="hidden")
        self._store.get(candidate_id)
        return self.timer_snapshot(candidate_id)

    def resume(self, candidate_id: str) -> TimerSnapshot:
        self._store.get(candidate_id)
        with self._single_flight(candidate_id):
            timer = self._timers.get(candidate_id)
            if timer is None or not timer.resume():
                return self.timer_snapshot(candidate_id)
            snapshot = timer.snapshot()
            candidate = self._store.get(candidate_id)
            candidate.chat_history.append(
                Message(sender="ai", text=f"Timer resumed. You have {snapshot.time_left}s remaining.", is_info=True)
            )
            self._store.upsert(candidate)
        log_event("timer_resumed", candidate_id, reason=f"{snapshot.time_left}s left")
        return snapshot

    def end_session(self, candidate_id: str) -> Candidate:
        """Force-finalize the candidate ("End & start new")."""

        with self._guard:
            if candidate_id in self._busy:
                self._abandoned.add(candidate_id)
        candidate = self._store.get(candidate_id)
        update = self._engine.force_finalize(candidate)
        return self._apply(update, force=True)

    # --- cold start --------------------------------------------------------------
    def find_unfinished(self) -> Optional[Candidate]:
        return self._store.find_unfinished()

    def resume_unfinished(self) -> Optional[Candidate]:
        candidate = self._store.find_unfinished()
        if candidate is None:
            return None
        self._store.set_active(candidate.id)
        self._store.set_tab("interviewee")
        pending = candidate.pending_question()
        if pending is not None:
            self._timer(candidate.id).start(pending.time_limit_seconds)
            log_event("session_resumed", candidate.id, index=candidate.current_question_index)
            return candidate
        with self._single_flight(candidate.id):
            update = self._engine.advance(candidate, on_progress=self._checkpoint)
            return self._apply(update)

    def discard_unfinished(self) -> Optional[Candidate]:
        """Delete an untouched unfinished session; finalize one that has scored answers."""

        candidate = self._store.find_unfinished()
        if candidate is None:
            return None
        if candidate.has_progress():
            return self.end_session(candidate.id)
        self._drop_timer(candidate.id)
        self._store.discard_in_progress(candidate.id)
        log_event("session_discarded", candidate.id)
        return None

    # --- internals -----------------------------------------------------------------
    @contextmanager
    def _single_flight(self, candidate_id: str) -> Iterator[None]:
        with self._guard:
            if candidate_id in self._busy:
                raise SessionBusyError(candidate_id)
            self._busy.add(candidate_id)
            self._abandoned.discard(candidate_id)
        try:
            yield
        finally:
            with self._guard:
                self._busy.discard(candidate_id)
                self._abandoned.discard(candidate_id)

    def _open_session(self) -> Optional[Candidate]:
        state = self._store.state()
        active = state.candidates.get(state.active_candidate_id or "")
        if active is not None and active.status != "Completed":
            return active
        return next((c for c in state.candidates.values() if c.status != "Completed"), None)

    def _is_stale(self, candidate_id: str) -> bool:
        with self._guard:
            if candidate_id in self._abandoned:
                return True
        return self._store.find(candidate_id) is None

    def _checkpoint(self, candidate: Candidate) -> None:
        if self._is_stale(candidate.id):
            return
        self._store.upsert(candidate)

    def _apply(self, update: SessionUpdate, *, force: bool = False) -> Candidate:
        candidate = update.candidate
        if not update.changed:
            return candidate
        if not force and self._is_stale(candidate.id):
            log_event("stale_result", candidate.id, level=logging.WARNING)
            return self._store.find(candidate.id) or candidate

        self._store.upsert(candidate)
        if update.question_started is not None:
            self._timer(candidate.id).start(update.question_started.time_limit_seconds)
        if update.release_active:
            self._drop_timer(candidate.id)
            if self._store.state().active_candidate_id == candidate.id:
                self._store.set_active(None)
        return candidate

    def _timer(self, candidate_id: str) -> QuestionTimer:
        with self._guard:
            timer = self._timers.get(candidate_id)
            if timer is None:
                timer = QuestionTimer(self._ticker_factory(), lambda: self._on_timeout(candidate_id))
                self._timers[candidate_id] = timer
            return timer

    def _drop_timer(self, candidate_id: str) -> None:
        with self._guard:
            timer = self._timers.pop(candidate_id, None)
        if timer is not None:
            timer.stop()

    def _on_timeout(self, candidate_id: str) -> None:
        with self._guard:
            if candidate_id in self._busy:
                logger.info("Timer expired for %s while a submit is in flight", candidate_id)
                return
        candidate = self._store.find(candidate_id)
        pending = candidate.pending_question() if candidate is not None else None
        if pending is None or pending.answer:
            return
        log_event("timer_expired", candidate_id, index=candidate.current_question_index)
        try:
            self.submit(candidate_id, "")
        except SessionBusyError:
            logger.info("Skipped auto-submit for %s: submit already in flight", candidate_id)


def build_controller(
    *,
    store: Optional[SessionStore] = None,
    evaluator: Optional[EvaluatorClient] = None,
    ticker_factory: Optional[TickerFactory] = None,
) -> InterviewController:
    """Assemble a controller from :data:`config.settings.settings`."""

    store = store or SessionStore(settings.STATE_DB_PATH)
    evaluator = evaluator or LlmEvaluatorClient.from_config(Path(settings.LLM_CONFIG_PATH))
    engine = InterviewSessionEngine(
        evaluator,
        config=EngineConfig(
            question_retry_limit=settings.QUESTION_RETRY_LIMIT,
            retry_delay_seconds=settings.QUESTION_RETRY_DELAY_SECONDS,
        ),
    )
    return InterviewController(store, engine, evaluator, ticker_factory=ticker_factory)


__all__ = ["InterviewController", "SessionActiveError", "SessionBusyError", "TickerFactory", "build_controller"]
