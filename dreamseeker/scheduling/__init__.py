"""
Client-side time scheduling: countdown labels, the adaptive re-render timer,
device-local reminder notifications and the focus countdown timer.

All timers run cooperatively on an asyncio event loop and are owned by the
component that created them.
"""
from .deadline import DeadlineLabel, format_deadline, next_tick_delay
from .rescheduler import AdaptiveRescheduler
from .local_notifications import (
    LocalNotificationScheduler,
    LoopNotificationPlatform,
    NotificationContent,
    NotificationPlatform,
    reminder_identifier,
)
from .focus_timer import FocusTimer, TimerStatus
from .exceptions import NotificationPlatformError, NotificationPermissionError, TimerStateError

__all__ = [
    "DeadlineLabel",
    "format_deadline",
    "next_tick_delay",
    "AdaptiveRescheduler",
    "LocalNotificationScheduler",
    "LoopNotificationPlatform",
    "NotificationContent",
    "NotificationPlatform",
    "reminder_identifier",
    "FocusTimer",
    "TimerStatus",
    "NotificationPlatformError",
    "NotificationPermissionError",
    "TimerStateError",
]
