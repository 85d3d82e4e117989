from __future__ import annotations

import pytest

from conftest import ManualTicker
from interview_session.controller import InterviewController, SessionActiveError, SessionBusyError
from interview_session.engine import ENDED_SUMMARY
from resume_extraction import DOCX_MIME, UnsupportedResumeError
from storage import SessionStore


def _start(controller: InterviewController, docx_resume: bytes):
    return controller.start_from_resume("resume.docx", DOCX_MIME, docx_resume)


def test_resume_upload_creates_active_candidate_and_starts_timer(controller, store, evaluator, tickers, docx_resume):
    candidate = _start(controller, docx_resume)

    state = store.state()
    assert state.active_candidate_id == candidate.id
    assert state.candidates[candidate.id].status == "InProgress"
    assert "Ada Lovelace" in evaluator.extract_calls[0]
    assert tickers[0].active
    assert controller.timer_snapshot(candidate.id).time_left == 20


def test_unsupported_upload_leaves_state_untouched(controller, store, evaluator):
    with pytest.raises(UnsupportedResumeError):
        controller.start_from_resume("notes.txt", "text/plain", b"hello")

    assert store.state().candidates == {}
    assert evaluator.extract_calls == []


def test_timer_expiry_submits_empty_answer(controller, store, evaluator, tickers, docx_resume):
    candidate = _start(controller, docx_resume)

    tickers[0].fire(20)

    stored = store.get(candidate.id)
    assert stored.questions[0].score == 0
    assert stored.questions[0].answer == ""
    assert stored.current_question_index == 1
    assert evaluator.evaluate_calls == []
    assert controller.timer_snapshot(candidate.id).time_left == 20


def test_pause_and_manual_resume(controller, store, tickers, docx_resume):
    candidate = _start(controller, docx_resume)
    tickers[0].fire(5)

    paused = controller.visibility(candidate.id, visible=False)
    assert paused.paused and paused.pause_reason == "hidden"
    assert not tickers[0].active

    still_paused = controller.visibility(candidate.id, visible=True)
    assert still_paused.paused

    resumed = controller.resume(candidate.id)
    assert resumed.paused is False
    assert resumed.time_left == 15
    assert store.get(candidate.id).chat_history[-1].text == "Timer resumed. You have 15s remaining."


def test_checkpoint_shows_evaluating_placeholder(controller, store, evaluator, docx_resume):
    candidate = _start(controller, docx_resume)
    seen = []
    evaluator.before_evaluate = lambda: seen.append(store.get(candidate.id).chat_history[-1].text)

    controller.submit(candidate.id, "closures capture variables")

    assert seen == ["Evaluating..."]
    assert store.get(candidate.id).chat_history[-1].text.startswith("Question 2/6")


def test_second_submit_while_evaluating_is_rejected(controller, evaluator, docx_resume):
    candidate = _start(controller, docx_resume)
    errors = []

    def _reenter():
        try:
            controller.submit(candidate.id, "again")
        except SessionBusyError as exc:
            errors.append(exc)

    evaluator.before_evaluate = _reenter
    controller.submit(candidate.id, "first")

    assert len(errors) == 1
    assert len(evaluator.evaluate_calls) == 1


def test_timeout_during_evaluation_is_skipped(controller, store, evaluator, docx_resume):
    candidate = _start(controller, docx_resume)
    evaluator.before_evaluate = lambda: controller._on_timeout(candidate.id)

    controller.submit(candidate.id, "answer")

    stored = store.get(candidate.id)
    assert [q.score for q in stored.questions if q.score is not None] == [80]


def test_expiry_after_recorded_answer_does_not_submit_empty(controller, store, evaluator, tickers, docx_resume):
    candidate = _start(controller, docx_resume)
    checkpoint = store.get(candidate.id)
    checkpoint.questions[0].answer = "closures capture variables"
    store.upsert(checkpoint)

    tickers[0].fire(20)

    stored = store.get(candidate.id)
    assert stored.questions[0].answer == "closures capture variables"
    assert stored.questions[0].score is None
    assert stored.current_question_index == 0
    assert len(stored.questions) == 1
    assert evaluator.evaluate_calls == []


def test_hiding_during_evaluation_starts_next_question_paused(controller, store, evaluator, tickers, docx_resume):
    candidate = _start(controller, docx_resume)
    hidden = []
    evaluator.before_evaluate = lambda: hidden.append(controller.visibility(candidate.id, visible=False))

    controller.submit(candidate.id, "closures capture variables")

    assert hidden[0].paused and hidden[0].pause_reason == "hidden"
    snapshot = controller.timer_snapshot(candidate.id)
    assert (snapshot.time_left, snapshot.running, snapshot.paused, snapshot.pause_reason) == (20, True, True, "hidden")
    assert not tickers[0].active
    assert store.get(candidate.id).current_question_index == 1

    resumed = controller.resume(candidate.id)
    assert resumed.paused is False
    assert tickers[0].active
    assert store.get(candidate.id).chat_history[-1].text == "Timer resumed. You have 20s remaining."


def test_resume_is_rejected_while_submit_is_in_flight(controller, store, evaluator, docx_resume):
    candidate = _start(controller, docx_resume)
    controller.pause(candidate.id)
    errors = []

    def _resume_midway():
        try:
            controller.resume(candidate.id)
        except SessionBusyError as exc:
            errors.append(exc)

    evaluator.before_evaluate = _resume_midway
    controller.submit(candidate.id, "answer")

    assert len(errors) == 1
    stored = store.get(candidate.id)
    assert stored.questions[0].score == 80
    assert not any(message.text.startswith("Timer resumed") for message in stored.chat_history)


def test_second_upload_is_rejected_while_interview_is_open(controller, store, evaluator, tickers, docx_resume):
    first = _start(controller, docx_resume)

    with pytest.raises(SessionActiveError) as excinfo:
        _start(controller, docx_resume)

    assert excinfo.value.candidate_id == first.id
    assert list(store.state().candidates) == [first.id]
    assert store.state().active_candidate_id == first.id
    assert len(evaluator.extract_calls) == 1
    assert len(tickers) == 1


def test_new_upload_after_ending_previous_interview(controller, store, tickers, docx_resume):
    first = _start(controller, docx_resume)
    controller.end_session(first.id)

    second = _start(controller, docx_resume)

    assert store.state().active_candidate_id == second.id
    assert not tickers[0].active
    assert tickers[1].active
    tickers[0].fire(20)
    assert store.get(first.id).status == "Completed"


def test_result_for_ended_session_is_dropped(controller, store, evaluator, docx_resume):
    candidate = _start(controller, docx_resume)
    evaluator.before_evaluate = lambda: controller.end_session(candidate.id)

    controller.submit(candidate.id, "answer")

    stored = store.get(candidate.id)
    assert stored.status == "Completed"
    assert stored.summary == ENDED_SUMMARY
    assert stored.final_score == 0
    assert stored.questions[0].score is None
    assert store.state().active_candidate_id is None


def test_full_interview_completes_and_releases_active(controller, store, evaluator, tickers, docx_resume):
    candidate = _start(controller, docx_resume)
    for index in range(6):
        controller.submit(candidate.id, f"answer {index}")

    stored = store.get(candidate.id)
    assert stored.status == "Completed"
    assert stored.final_score == 80
    assert stored.summary == evaluator.summary
    assert store.state().active_candidate_id is None
    assert not tickers[0].active
    assert [c.id for c in store.list_completed()] == [candidate.id]


def test_end_session_finalizes_with_partial_score(controller, store, evaluator, docx_resume):
    evaluator.scores = [90]
    candidate = _start(controller, docx_resume)
    controller.submit(candidate.id, "answer")

    ended = controller.end_session(candidate.id)

    assert ended.status == "Completed"
    assert ended.final_score == 15
    assert store.state().active_candidate_id is None


def test_cold_start_resume_restarts_pending_question(controller, engine, evaluator, tmp_db, docx_resume):
    candidate = _start(controller, docx_resume)
    restarted_tickers = []

    def _factory():
        ticker = ManualTicker()
        restarted_tickers.append(ticker)
        return ticker

    store = SessionStore(tmp_db)
    store.set_active(None)
    fresh = InterviewController(store, engine, evaluator, ticker_factory=_factory)

    assert fresh.find_unfinished().id == candidate.id
    resumed = fresh.resume_unfinished()

    assert resumed.id == candidate.id
    assert store.state().active_candidate_id == candidate.id
    assert restarted_tickers[0].active
    assert fresh.timer_snapshot(candidate.id).time_left == 20
    assert len(evaluator.generate_calls) == 1


def test_cold_start_discard_without_progress_deletes(controller, store, docx_resume):
    candidate = _start(controller, docx_resume)

    assert controller.discard_unfinished() is None
    assert candidate.id not in store.state().candidates
    assert store.state().active_candidate_id is None


def test_cold_start_discard_with_progress_finalizes(controller, store, docx_resume):
    candidate = _start(controller, docx_resume)
    controller.submit(candidate.id, "answer")

    finalized = controller.discard_unfinished()

    assert finalized.id == candidate.id
    assert store.get(candidate.id).status == "Completed"
    assert store.get(candidate.id).summary == ENDED_SUMMARY


def test_nothing_unfinished(controller):
    assert controller.resume_unfinished() is None
    assert controller.discard_unfinished() is None
