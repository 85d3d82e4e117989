from __future__ import annotations  # Process-wide controller used by the routes

import threading
from typing import Optional

from interview_session.controller import InterviewController, build_controller

_controller: Optional[InterviewController] = None
_lock = threading.Lock()


def get_controller() -> InterviewController:
    """Build the controller on first use; tests override this dependency."""
    global _controller
    with _lock:
        if _controller is None:
            _controller = build_controller()
        return _controller


__all__ = ["get_controller"]
