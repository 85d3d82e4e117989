"""Per-question countdown with an explicit ticker.

The countdown itself is plain state; a :class:`Ticker` delivers one tick per
interval. Pausing stops the ticker entirely, and resuming starts a fresh one,
so a paused countdown can never fire. A pause requested while no countdown
runs (between questions) is held and applied to the next start.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TimerSnapshot(BaseModel):
    time_left: int = 0
    running: bool = False
    paused: bool = False
    pause_reason: Optional[str] = None


class Countdown:
    def __init__(self) -> None:
        self.time_left = 0
        self.running = False
        self.paused = False

    def start(self, seconds: int) -> None:
        self.time_left = max(0, int(seconds))
        self.running = self.time_left > 0
        self.paused = False

    def tick(self) -> bool:
        """Count down one unit; True exactly when this tick reaches zero."""
        if not self.running or self.paused:
            return False
        self.time_left = max(0, self.time_left - 1)
        if self.time_left == 0:
            self.running = False
            return True
        return False

    def pause(self) -> None:
        if self.running:
            self.paused = True

    def resume(self) -> None:
        self.paused = False

    def stop(self) -> None:
        self.running = False
        self.paused = False


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class ThreadTicker:  # Daemon thread invoking the callback every interval
    def __init__(self, interval: float = 1.0) -> None:
        self._interval = interval
        self._stop = threading.Event()

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        stop = threading.Event()
        self._stop = stop

        def _loop() -> None:
            while not stop.wait(self._interval):
                try:
                    callback()
                except Exception:  # noqa: BLE001
                    logger.exception("Timer tick callback failed")

        threading.Thread(target=_loop, name="question-timer", daemon=True).start()

    def stop(self) -> None:
        # The loop exits at its next wait; a tick already in flight is discarded by QuestionTimer.
        self._stop.set()


class QuestionTimer:  # Countdown plus ticker subscription for one candidate
    def __init__(self, ticker: Ticker, on_expire: Callable[[], None]) -> None:
        self._ticker = ticker
        self._on_expire = on_expire
        self._countdown = Countdown()
        self._pause_reason: Optional[str] = None
        self._pause_pending = False
        self._generation = 0
        self._lock = threading.Lock()

    def start(self, seconds: int) -> None:
        """Start a fresh countdown; a pause requested between questions applies to it."""
        with self._lock:
            self._ticker.stop()
            self._countdown.start(seconds)
            if self._pause_pending:
                self._pause_pending = False
                self._countdown.pause()
                self._generation += 1
                return
            self._pause_reason = None
            self._subscribe()

    def pause(self, reason: str = "manual") -> bool:
        with self._lock:
            if self._countdown.paused or self._pause_pending:
                return False
            if not self._countdown.running:
                self._pause_pending = True
                self._pause_reason = reason
                return True
            self._ticker.stop()
            self._countdown.pause()
            self._pause_reason = reason
            return True

    def resume(self) -> bool:
        with self._lock:
            if self._pause_pending:
                self._pause_pending = False
                self._pause_reason = None
                return False
            if not self._countdown.paused:
                return False
            self._countdown.resume()
            self._pause_reason = None
            self._subscribe()
            return True

    def stop(self) -> None:
        with self._lock:
            self._ticker.stop()
            self._countdown.stop()
            if not self._pause_pending:
                self._pause_reason = None

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return TimerSnapshot(
                time_left=self._countdown.time_left,
                running=self._countdown.running,
                paused=self._countdown.paused or self._pause_pending,
                pause_reason=self._pause_reason,
            )

    def _subscribe(self) -> None:
        self._generation += 1
        if not self._countdown.running:
            return
        generation = self._generation
        self._ticker.start(lambda: self._tick(generation))

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            expired = self._countdown.tick()
            if expired:
                self._ticker.stop()
        if expired:
            self._on_expire()


__all__ = ["Countdown", "QuestionTimer", "ThreadTicker", "Ticker", "TimerSnapshot"]
