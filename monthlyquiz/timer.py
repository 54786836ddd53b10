"""
Session timer state machine.

Polls the clock, reports Pending / Active / Elapsed and fires the
auto-submit callback exactly once on the Active -> Elapsed edge.
"""

import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from .models import ExamWindow
from .windows import Clock, utc_now


class TimerState(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ELAPSED = "elapsed"
    CLOSED = "closed"


class SessionTimer:
    """Countdown against an exam window, driven by a background thread."""

    def __init__(
        self,
        window: ExamWindow,
        on_elapsed: Callable[[], None],
        clock: Clock = utc_now,
        interval: float = 0.5,
        on_tick: Optional[Callable[[TimerState, timedelta], None]] = None,
        log: Optional[Callable[[str, str], None]] = None
    ):
        self.window = window
        self.on_elapsed = on_elapsed
        self.clock = clock
        self.interval = interval
        self.on_tick = on_tick
        self.log = log

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stopped = False
        self.thread: Optional[threading.Thread] = None

        self.state = self._state_at(clock())

    def _state_at(self, now: datetime) -> TimerState:
        if now < self.window.start:
            return TimerState.PENDING
        if now < self.window.end:
            return TimerState.ACTIVE
        return TimerState.ELAPSED

    def _log(self, event: str, details: str = ""):
        if self.log:
            self.log(event, details)

    def remaining(self, now: Optional[datetime] = None) -> timedelta:
        """Time until the window closes, or until it opens while pending."""
        now = now or self.clock()
        if now < self.window.start:
            return self.window.start - now
        return max(self.window.end - now, timedelta(0))

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def tick(self) -> TimerState:
        """
        Recompute the state from the clock.

        On the Active -> Elapsed edge the periodic check is stopped before
        the auto-submit callback runs; the state becomes CLOSED once the
        callback has returned.
        """
        now = self.clock()
        fire = False
        with self._lock:
            if self._stopped or self.state in (TimerState.ELAPSED, TimerState.CLOSED):
                return self.state
            new_state = self._state_at(now)
            if new_state is TimerState.ACTIVE and self.state is TimerState.PENDING:
                self._log("TIMER_ACTIVE", "Exam window opened")
            if new_state is TimerState.ELAPSED:
                fire = self.state is TimerState.ACTIVE
                self._stopped = True
                self._stop_event.set()
            self.state = new_state

        if self.on_tick:
            self.on_tick(new_state, self.remaining(now))

        if fire:
            self._log("EXAM_TIMEOUT", "Exam time finished - auto-submitting")
            try:
                self.on_elapsed()
            finally:
                with self._lock:
                    self.state = TimerState.CLOSED
        return self.state

    def start(self):
        """Start the background polling thread."""
        if self.thread is not None or self._stopped:
            return
        if self.state in (TimerState.ELAPSED, TimerState.CLOSED):
            return
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def stop(self):
        """Stop polling; no auto-submit fires after this returns."""
        with self._lock:
            self._stopped = True
        self._stop_event.set()
        if self.thread and self.thread is not threading.current_thread() and self.thread.is_alive():
            self.thread.join(timeout=self.interval + 1.0)

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                self._log("TIMER_ERROR", f"Timer tick failed: {e}")
                break
            self._stop_event.wait(self.interval)
