from __future__ import annotations

import pytest

from observability import logger as event_logger
from observability import tracing


def test_human_line_lists_known_fields_only():
    line = event_logger._format_human(
        {"candidate_id": "cand_1", "kind": "answer_scored", "score": 80, "index": 0, "payload": "ignored"}
    )
    assert line == "candidate=cand_1 kind=answer_scored index=0 score=80"


def test_span_records_duration_and_outcome(monkeypatch):
    events = []
    monkeypatch.setattr(tracing, "log_event", lambda kind, cid, **fields: events.append((kind, cid, fields)))

    with tracing.span("cand_1", "submit"):
        pass
    with pytest.raises(RuntimeError):
        with tracing.span("cand_1", "submit"):
            raise RuntimeError("boom")

    assert [event[2]["outcome"] for event in events] == ["ok", "error"]
    assert all(event[2]["op"] == "submit" and event[2]["ms"] >= 0 for event in events)


def test_log_event_emits_without_file_handlers():
    event_logger.log_event("candidate_created", "cand_2", missing=[])
