"""
Countdown labels for action reminders and deadlines.

Minute counts always round up so a countdown never reads "0m"; hour and day
counts round to nearest so "1h"/"1d" is not shown for most of the next unit.
"""
import math
from dataclasses import dataclass
from typing import Optional

from dreamseeker.utils.timeutils import MINUTE_MS, HOUR_MS, DAY_MS, js_round

# Past the label boundary so the overdue label is already current when we wake
BOUNDARY_BUFFER_MS = 100


@dataclass(frozen=True)
class DeadlineLabel:
    label: str
    is_overdue: bool


def _minutes(ms: int) -> int:
    return max(1, math.ceil(ms / MINUTE_MS))


def format_deadline(deadline_ms: Optional[int], now_ms: int) -> Optional[DeadlineLabel]:
    if deadline_ms is None:
        return None

    diff = deadline_ms - now_ms

    if diff < 0:
        elapsed = -diff
        if elapsed < HOUR_MS:
            return DeadlineLabel(f"Overdue {_minutes(elapsed)}m", True)
        if elapsed < DAY_MS:
            return DeadlineLabel(f"Overdue {js_round(elapsed / HOUR_MS)}h", True)
        return DeadlineLabel(f"Overdue {js_round(elapsed / DAY_MS)}d", True)

    if diff < HOUR_MS:
        return DeadlineLabel(f"Due in {_minutes(diff)}m", False)
    if diff < DAY_MS:
        return DeadlineLabel(f"Due in {js_round(diff / HOUR_MS)}h", False)
    if diff < 2 * DAY_MS:
        return DeadlineLabel("Due tomorrow", False)
    return DeadlineLabel(f"Due in {js_round(diff / DAY_MS)}d", False)


def next_tick_delay(deadline_ms: int, now_ms: int) -> int:
    """Milliseconds until the formatted label could next change."""
    diff = deadline_ms - now_ms

    # About to cross the deadline: wake just after the boundary itself
    if 0 <= diff < MINUTE_MS:
        return diff + BOUNDARY_BUFFER_MS

    distance = abs(diff)
    if distance < HOUR_MS:
        return MINUTE_MS
    if distance < DAY_MS:
        return 30 * MINUTE_MS
    return HOUR_MS
