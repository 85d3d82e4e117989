from __future__ import annotations

import sqlite3

import pytest

from interview_session.models import AppState, Candidate, Question
from storage import CandidateNotFoundError, InvalidStoreActionError, PersistenceError, SessionStore, STATE_KEY
from storage.app_state import SetActive, SetTab, UpsertCandidate, reduce


def _candidate(**overrides) -> Candidate:
    values = {"name": "Ada", "email": "ada@example.com", "phone": "1", "status": "InProgress"}
    values.update(overrides)
    return Candidate(**values)


def _scored() -> Question:
    return Question(text="What is a closure?", difficulty="Easy", time_limit_seconds=20, answer="...", score=70)


def test_reduce_does_not_mutate_input():
    state = AppState()
    candidate = _candidate()

    nxt = reduce(state, UpsertCandidate(candidate=candidate))
    nxt = reduce(nxt, SetActive(candidate_id=candidate.id))
    nxt = reduce(nxt, SetTab(tab="interviewer"))

    assert state.candidates == {} and state.active_candidate_id is None
    assert nxt.active_candidate_id == candidate.id
    assert nxt.active_tab == "interviewer"


def test_set_active_requires_known_candidate():
    with pytest.raises(CandidateNotFoundError):
        reduce(AppState(), SetActive(candidate_id="missing"))


def test_upsert_rejects_backward_status():
    done = _candidate(status="Completed")
    state = reduce(AppState(), UpsertCandidate(candidate=done))

    with pytest.raises(InvalidStoreActionError):
        reduce(state, UpsertCandidate(candidate=done.model_copy(update={"status": "InProgress"})))


def test_round_trip_survives_reload(tmp_db):
    store = SessionStore(tmp_db)
    candidate = _candidate(questions=[_scored()], current_question_index=1)
    store.upsert(candidate)
    store.set_active(candidate.id)
    store.set_tab("interviewer")

    reloaded = SessionStore(tmp_db).state()

    assert reloaded == store.state()
    assert reloaded.candidates[candidate.id].questions[0].score == 70


def test_payload_uses_camel_case_keys(tmp_db):
    store = SessionStore(tmp_db)
    candidate = _candidate(current_question_index=2)
    store.upsert(candidate)
    store.set_active(candidate.id)

    conn = sqlite3.connect(tmp_db)
    try:
        (payload,) = conn.execute("SELECT payload FROM app_state WHERE storage_key = ?", (STATE_KEY,)).fetchone()
    finally:
        conn.close()

    assert '"activeCandidateId"' in payload
    assert '"currentQuestionIndex":2' in payload
    assert '"chatHistory"' in payload


def test_list_completed_and_find_unfinished(store):
    done = _candidate(status="Completed", final_score=60)
    running = _candidate(name="Grace")
    store.upsert(done)
    store.upsert(running)

    assert [c.id for c in store.list_completed()] == [done.id]
    assert store.find_unfinished().id == running.id


def test_discard_only_before_progress(store):
    fresh = _candidate()
    started = _candidate(questions=[_scored()], current_question_index=1)
    store.upsert(fresh)
    store.upsert(started)
    store.set_active(fresh.id)

    state = store.discard_in_progress(fresh.id)
    assert fresh.id not in state.candidates
    assert state.active_candidate_id is None

    with pytest.raises(InvalidStoreActionError):
        store.discard_in_progress(started.id)
    with pytest.raises(CandidateNotFoundError):
        store.discard_in_progress("missing")


def test_get_unknown_candidate_raises(store):
    with pytest.raises(CandidateNotFoundError):
        store.get("nope")


def test_failed_write_keeps_previous_state(store, monkeypatch):
    candidate = _candidate()
    store.upsert(candidate)

    def _broken(*_args, **_kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr("storage.session_store.get_conn", _broken)

    with pytest.raises(PersistenceError):
        store.set_tab("interviewer")
    assert store.state().active_tab == "interviewee"


def test_corrupt_payload_raises_persistence_error(tmp_db):
    SessionStore(tmp_db).set_tab("interviewer")
    conn = sqlite3.connect(tmp_db)
    try:
        conn.execute("UPDATE app_state SET payload = ? WHERE storage_key = ?", ("{not json", STATE_KEY))
        conn.commit()
    finally:
        conn.close()

    with pytest.raises(PersistenceError):
        SessionStore(tmp_db).state()
