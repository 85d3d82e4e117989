"""FastAPI routes for interview sessions and the reviewer dashboard."""
from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from api.dependencies import get_controller
from api.schemas import (
    AnswerReq,
    DashboardResp,
    PauseReq,
    SessionResp,
    TabReq,
    TimerView,
    UnfinishedResp,
    VisibilityReq,
)
from dashboard import (
    CandidateDetail,
    SortConfig,
    candidate_detail,
    generate_candidate_report_pdf,
    list_completed_sessions,
)
from dashboard.views import SortDirection, SortKey
from interview_session import InvalidTransitionError
from interview_session.controller import InterviewController, SessionActiveError, SessionBusyError
from interview_session.models import AppState, Candidate
from resume_extraction import UnsupportedResumeError
from storage import CandidateNotFoundError, InvalidStoreActionError, PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except UnsupportedResumeError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except CandidateNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Candidate not found") from exc
    except (SessionBusyError, SessionActiveError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (InvalidTransitionError, InvalidStoreActionError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except PersistenceError as exc:
        logger.exception("Persisting interview state failed")
        raise HTTPException(status_code=500, detail="Unable to save interview state") from exc


def _session(controller: InterviewController, candidate: Candidate) -> SessionResp:
    return SessionResp(
        candidate=candidate,
        timer=TimerView.from_snapshot(controller.timer_snapshot(candidate.id)),
    )


def _safe_slug(value: str) -> str:  # Sanitize value for filenames
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower())
    return re.sub(r"-+", "-", slug).strip("-")


# --- app state ---------------------------------------------------------------


@router.get("/state", response_model=AppState)
def read_state(controller: InterviewController = Depends(get_controller)) -> AppState:
    with _domain_errors():
        return controller.state()


@router.put("/state/tab", response_model=AppState)
def switch_tab(req: TabReq, controller: InterviewController = Depends(get_controller)) -> AppState:
    with _domain_errors():
        return controller.set_tab(req.tab)


# --- interview flow ------------------------------------------------------------


@router.post("/resume", response_model=SessionResp, status_code=201)
def upload_resume(
    file: UploadFile = File(...),
    controller: InterviewController = Depends(get_controller),
) -> SessionResp:
    data = file.file.read()
    with _domain_errors():
        candidate = controller.start_from_resume(file.filename or "", file.content_type, data)
        return _session(controller, candidate)


@router.get("/candidates/{candidate_id}", response_model=SessionResp)
def read_candidate(candidate_id: str, controller: InterviewController = Depends(get_controller)) -> SessionResp:
    with _domain_errors():
        return _session(controller, controller.candidate(candidate_id))


@router.post("/candidates/{candidate_id}/answer", response_model=SessionResp)
def submit_answer(
    candidate_id: str,
    req: AnswerReq,
    controller: InterviewController = Depends(get_controller),
) -> SessionResp:
    with _domain_errors():
        candidate = controller.submit(candidate_id, req.text)
        return _session(controller, candidate)


@router.post("/candidates/{candidate_id}/pause", response_model=TimerView)
def pause_timer(
    candidate_id: str,
    req: PauseReq,
    controller: InterviewController = Depends(get_controller),
) -> TimerView:
    with _domain_errors():
        return TimerView.from_snapshot(controller.pause(candidate_id, req.reason))


@router.post("/candidates/{candidate_id}/visibility", response_model=TimerView)
def report_visibility(
    candidate_id: str,
    req: VisibilityReq,
    controller: InterviewController = Depends(get_controller),
) -> TimerView:
    with _domain_errors():
        return TimerView.from_snapshot(controller.visibility(candidate_id, req.visible))


@router.post("/candidates/{candidate_id}/resume", response_model=TimerView)
def resume_timer(candidate_id: str, controller: InterviewController = Depends(get_controller)) -> TimerView:
    with _domain_errors():
        return TimerView.from_snapshot(controller.resume(candidate_id))


@router.post("/candidates/{candidate_id}/end", response_model=SessionResp)
def end_session(candidate_id: str, controller: InterviewController = Depends(get_controller)) -> SessionResp:
    with _domain_errors():
        return _session(controller, controller.end_session(candidate_id))


# --- cold start ------------------------------------------------------------------


@router.get("/session/unfinished", response_model=UnfinishedResp)
def read_unfinished(controller: InterviewController = Depends(get_controller)) -> UnfinishedResp:
    with _domain_errors():
        return UnfinishedResp(candidate=controller.find_unfinished())


@router.post("/session/unfinished/resume", response_model=UnfinishedResp)
def resume_unfinished(controller: InterviewController = Depends(get_controller)) -> UnfinishedResp:
    with _domain_errors():
        return UnfinishedResp(candidate=controller.resume_unfinished())


@router.post("/session/unfinished/discard", response_model=UnfinishedResp)
def discard_unfinished(controller: InterviewController = Depends(get_controller)) -> UnfinishedResp:
    with _domain_errors():
        return UnfinishedResp(candidate=controller.discard_unfinished())


# --- dashboard ---------------------------------------------------------------------


@router.get("/dashboard/candidates", response_model=DashboardResp)
def list_dashboard(
    search: str = "",
    sort: SortKey = "finalScore",
    direction: SortDirection = "desc",
    controller: InterviewController = Depends(get_controller),
) -> DashboardResp:
    config = SortConfig(key=sort, direction=direction)
    with _domain_errors():
        rows = list_completed_sessions(controller.state(), search, config)
    return DashboardResp(search=search, sort=config, candidates=rows)


@router.get("/dashboard/candidates/{candidate_id}", response_model=CandidateDetail)
def read_dashboard_detail(
    candidate_id: str,
    controller: InterviewController = Depends(get_controller),
) -> CandidateDetail:
    with _domain_errors():
        return candidate_detail(controller.state(), candidate_id)


@router.get("/dashboard/candidates/{candidate_id}/report.pdf")
def download_report(candidate_id: str, controller: InterviewController = Depends(get_controller)) -> Response:
    with _domain_errors():
        detail = candidate_detail(controller.state(), candidate_id)
    payload = generate_candidate_report_pdf(detail)
    filename = f"{_safe_slug(detail.name) or detail.id}-interview-report.pdf"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)


__all__ = ["router"]
