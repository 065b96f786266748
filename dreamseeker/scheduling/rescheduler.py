"""
Self-rescheduling single-shot timer for live countdown labels.

Instead of polling every second, each firing re-renders and arms a new
single-shot delay from ``next_tick_delay`` against the current clock, so the
cadence tightens on its own as the deadline approaches.
"""
import asyncio
import logging
from typing import Callable, Optional

from dreamseeker.utils.timeutils import now_ms
from .deadline import DeadlineLabel, format_deadline, next_tick_delay

logger = logging.getLogger(__name__)


class AdaptiveRescheduler:
    def __init__(
        self,
        on_change: Callable[[Optional[DeadlineLabel]], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.on_change = on_change
        self.clock = clock
        self._loop = loop
        self._deadline: Optional[int] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._disposed = False

    @property
    def deadline(self) -> Optional[int]:
        return self._deadline

    @property
    def label(self) -> Optional[DeadlineLabel]:
        return format_deadline(self._deadline, self.clock())

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def watch(self, deadline_ms: Optional[int]) -> Optional[DeadlineLabel]:
        """Track a new deadline (or none) and return the label to render now."""
        if self._disposed:
            raise RuntimeError("AdaptiveRescheduler has been disposed")
        self._cancel()
        self._deadline = deadline_ms
        if deadline_ms is not None:
            self._arm()
        return self.label

    def dispose(self) -> None:
        self._cancel()
        self._deadline = None
        self._disposed = True

    def __enter__(self) -> "AdaptiveRescheduler":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    def _arm(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        delay_ms = next_tick_delay(self._deadline, self.clock())
        self._handle = loop.call_later(delay_ms / 1000, self._fire)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._disposed or self._deadline is None:
            return
        # Re-arm before rendering so a failing callback cannot stop the countdown
        self._arm()
        self.on_change(self.label)
