from .base import (
    EVALUATION_FAILED_FEEDBACK,
    NO_ANSWER_FEEDBACK,
    SUMMARY_FALLBACK,
    AnswerEvaluation,
    ContactInfo,
    Difficulty,
    EvaluatorClient,
    EvaluatorError,
    GeneratedQuestion,
    QuestionFailure,
    QuestionResult,
    TranscriptItem,
)
from .llm_client import LlmEvaluatorClient

__all__ = [
    "EVALUATION_FAILED_FEEDBACK",
    "NO_ANSWER_FEEDBACK",
    "SUMMARY_FALLBACK",
    "AnswerEvaluation",
    "ContactInfo",
    "Difficulty",
    "EvaluatorClient",
    "EvaluatorError",
    "GeneratedQuestion",
    "LlmEvaluatorClient",
    "QuestionFailure",
    "QuestionResult",
    "TranscriptItem",
]
