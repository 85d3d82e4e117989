import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

from config.settings import settings
from evaluator_client import (
    AnswerEvaluation,
    ContactInfo,
    GeneratedQuestion,
    QuestionFailure,
    QuestionResult,
    TranscriptItem,
)
from interview_session.controller import InterviewController
from interview_session.engine import EngineConfig, InterviewSessionEngine
from storage import SessionStore

ScoreScript = Union[int, Exception]


class FakeEvaluator:
    """Scripted evaluator; questions are generated on demand unless queued."""

    def __init__(
        self,
        *,
        contact: Optional[ContactInfo] = None,
        questions: Optional[Sequence[QuestionResult]] = None,
        scores: Optional[Sequence[ScoreScript]] = None,
        summary: Union[str, Exception] = "Strong fundamentals, room to grow on system design.",
    ) -> None:
        self.contact = contact or ContactInfo(name="Ada Lovelace", email="ada@example.com", phone="555-0100")
        self.questions: List[QuestionResult] = list(questions or [])
        self.scores: List[ScoreScript] = list(scores or [])
        self.summary = summary
        self.extract_calls: List[str] = []
        self.generate_calls: List[Tuple[str, List[str]]] = []
        self.evaluate_calls: List[Tuple[str, str]] = []
        self.summary_calls: List[Tuple[str, List[TranscriptItem]]] = []
        self.before_evaluate: Optional[Callable[[], None]] = None

    def extract_contact_info(self, resume_text: str) -> ContactInfo:
        self.extract_calls.append(resume_text)
        return self.contact

    def generate_question(self, difficulty, exclude) -> QuestionResult:
        self.generate_calls.append((difficulty, list(exclude)))
        if self.questions:
            return self.questions.pop(0)
        return GeneratedQuestion(text=f"{difficulty} question #{len(self.generate_calls)}")

    def evaluate_answer(self, question: str, answer: str) -> AnswerEvaluation:
        self.evaluate_calls.append((question, answer))
        if self.before_evaluate is not None:
            self.before_evaluate()
        outcome = self.scores.pop(0) if self.scores else 80
        if isinstance(outcome, Exception):
            raise outcome
        return AnswerEvaluation(score=outcome, feedback=f"Scored {outcome}")

    def summarize_session(self, candidate_name: str, questions) -> str:
        self.summary_calls.append((candidate_name, list(questions)))
        if isinstance(self.summary, Exception):
            raise self.summary
        return self.summary


class ManualTicker:
    """Ticker driven by the test instead of a thread."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        self.callback = None

    @property
    def active(self) -> bool:
        return self.callback is not None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


def failure(reason: str = "service unavailable") -> QuestionFailure:
    return QuestionFailure(reason=reason)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch, tmp_path):
    db_path = str(tmp_path / "state.db")
    monkeypatch.setattr(settings, "STATE_DB_PATH", db_path)
    yield db_path


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()


@pytest.fixture
def engine(evaluator) -> InterviewSessionEngine:
    return InterviewSessionEngine(evaluator, config=EngineConfig(retry_delay_seconds=0.0), sleep=lambda _: None)


@pytest.fixture
def store(tmp_db) -> SessionStore:
    return SessionStore(tmp_db)


@pytest.fixture
def tickers() -> List[ManualTicker]:
    return []


@pytest.fixture
def controller(store, engine, evaluator, tickers) -> InterviewController:
    def _factory() -> ManualTicker:
        ticker = ManualTicker()
        tickers.append(ticker)
        return ticker

    return InterviewController(store, engine, evaluator, ticker_factory=_factory)


@pytest.fixture
def docx_resume() -> bytes:
    from io import BytesIO

    from docx import Document

    doc = Document()
    doc.add_heading("Ada Lovelace", level=1)
    doc.add_paragraph("ada@example.com | 555-0100")
    doc.add_paragraph("Full stack engineer with React and Node.js experience.")
    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def api_client(controller):
    from fastapi.testclient import TestClient

    from api.dependencies import get_controller
    from api_server import app

    app.dependency_overrides[get_controller] = lambda: controller
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
