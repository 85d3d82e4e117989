"""Timing helper for evaluator round-trips."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from .logger import log_event


@contextmanager
def span(candidate_id: str, op: str) -> Iterator[None]:
    start = time.time()
    outcome = "ok"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        elapsed_ms = int((time.time() - start) * 1000)
        log_event("span", candidate_id, op=op, ms=elapsed_ms, outcome=outcome)


__all__ = ["span"]
