import math
import time
from datetime import datetime, timezone as dt_timezone
from typing import Optional

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def js_round(value: float) -> int:
    """
    Round half up, like JavaScript's Math.round.
    Python's round() uses banker's rounding (round(2.5) == 2), which would
    shift countdown labels at exact half-unit boundaries.
    """
    return int(math.floor(value + 0.5))


def ms_to_datetime(ms: Optional[int]) -> Optional[datetime]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=dt_timezone.utc)
