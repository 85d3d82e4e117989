"""Dashboard projections and printable reports for completed interviews."""
from .pdf import generate_candidate_report_pdf
from .views import (
    CandidateDetail,
    CandidateRow,
    SortConfig,
    TranscriptEntry,
    candidate_detail,
    list_completed_sessions,
    next_sort,
    score_band,
)

__all__ = [
    "CandidateDetail",
    "CandidateRow",
    "SortConfig",
    "TranscriptEntry",
    "candidate_detail",
    "generate_candidate_report_pdf",
    "list_completed_sessions",
    "next_sort",
    "score_band",
]
