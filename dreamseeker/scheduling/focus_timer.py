"""
Focus countdown timer that survives app suspension.

While running it ticks once per second. When the app goes to the background
the tick stops and the wall clock is captured; on return the whole elapsed
time is subtracted in one step, so the countdown never drifts with missed or
throttled ticks.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from dreamseeker.utils.timeutils import now_ms
from .exceptions import TimerStateError

logger = logging.getLogger(__name__)

DEFAULT_FOCUS_DURATION = 25 * 60
MIN_FOCUS_DURATION = 1
MAX_FOCUS_DURATION = 8 * 60 * 60

SUSPENDED_APP_STATES = ("background", "inactive")
ACTIVE_APP_STATE = "active"


class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


def validate_focus_duration(seconds: int) -> None:
    if seconds < MIN_FOCUS_DURATION:
        raise ValueError("Session must be at least 1 second")
    if seconds > MAX_FOCUS_DURATION:
        raise ValueError("Session cannot exceed 8 hours")


class FocusTimer:
    def __init__(
        self,
        duration: int = DEFAULT_FOCUS_DURATION,
        on_change: Optional[Callable[["FocusTimer"], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], int] = now_ms,
    ):
        validate_focus_duration(duration)
        self.on_change = on_change
        self.clock = clock
        self._loop = loop
        self._duration = duration
        self._remaining = duration
        self._status = TimerStatus.IDLE
        self._tick_handle: Optional[asyncio.TimerHandle] = None
        self._suspended_at: Optional[int] = None

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def status(self) -> TimerStatus:
        return self._status

    @property
    def progress(self) -> float:
        if self._duration <= 0:
            return 0.0
        return (self._duration - self._remaining) / self._duration

    def start(self) -> None:
        self._require(TimerStatus.IDLE, "start")
        self._run()

    def pause(self) -> None:
        self._require(TimerStatus.RUNNING, "pause")
        self._stop_tick()
        # Time spent suspended before the pause still counts as running
        self._reconcile_suspension()
        if self._status == TimerStatus.RUNNING:
            self._status = TimerStatus.PAUSED
        self._notify()

    def resume(self) -> None:
        self._require(TimerStatus.PAUSED, "resume")
        self._run()

    def reset(self) -> None:
        self._stop_tick()
        self._suspended_at = None
        self._remaining = self._duration
        self._status = TimerStatus.IDLE
        self._notify()

    def set_duration(self, seconds: int) -> None:
        if self._status == TimerStatus.RUNNING:
            raise TimerStateError("Cannot change the duration of a running timer")
        validate_focus_duration(seconds)
        self._duration = seconds
        self.reset()

    def on_app_state(self, state: str) -> None:
        """Feed app lifecycle changes (``active``, ``inactive``, ``background``)."""
        if self._status != TimerStatus.RUNNING:
            return

        if state in SUSPENDED_APP_STATES:
            if self._suspended_at is None:
                self._suspended_at = self.clock()
                self._stop_tick()
        elif state == ACTIVE_APP_STATE and self._suspended_at is not None:
            self._reconcile_suspension()
            if self._status == TimerStatus.RUNNING:
                self._schedule_tick()
            self._notify()

    def dispose(self) -> None:
        self._stop_tick()
        self.on_change = None

    def _require(self, status: TimerStatus, operation: str) -> None:
        if self._status != status:
            raise TimerStateError(f"Cannot {operation} a timer that is {self._status.value}")

    def _run(self) -> None:
        self._suspended_at = None
        self._status = TimerStatus.RUNNING
        self._schedule_tick()
        self._notify()

    def _schedule_tick(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._tick_handle = loop.call_later(1, self._tick)

    def _stop_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _tick(self) -> None:
        self._tick_handle = None
        if self._status != TimerStatus.RUNNING:
            return
        self._set_remaining(self._remaining - 1)
        if self._status == TimerStatus.RUNNING:
            self._schedule_tick()
        self._notify()

    def _reconcile_suspension(self) -> None:
        if self._suspended_at is None:
            return
        elapsed = (self.clock() - self._suspended_at) // 1000
        self._suspended_at = None
        self._set_remaining(self._remaining - elapsed)

    def _set_remaining(self, value: int) -> None:
        self._remaining = max(0, value)
        if self._remaining == 0:
            self._stop_tick()
            self._status = TimerStatus.COMPLETE
            logger.debug("[FocusTimer] Countdown complete")

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
