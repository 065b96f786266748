"""
Device-local reminder notifications.

Each action maps to exactly one platform notification identified by
``reminder-<action id>``, so re-scheduling replaces and cancelling needs no
bookkeeping. Failures never reach the caller: the server reminder sweep
delivers the reminder when the local path is unavailable.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from dreamseeker.reminders.metrics import local_notification_failures_total
from dreamseeker.reminders.state import ReminderState, reminder_state
from dreamseeker.utils.timeutils import now_ms, js_round
from .exceptions import NotificationPlatformError, NotificationPermissionError

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Reminder"


def reminder_identifier(entity_id: str) -> str:
    return f"reminder-{entity_id}"


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    sound: bool = True


class NotificationPlatform(ABC):
    """Narrow view of the OS notification scheduler."""

    @abstractmethod
    async def schedule_after(self, identifier: str, delay_seconds: int, content: NotificationContent) -> None:
        ...

    @abstractmethod
    async def cancel(self, identifier: str) -> None:
        """Must not raise when nothing is scheduled under ``identifier``."""


class LoopNotificationPlatform(NotificationPlatform):
    """Delivers notifications from the asyncio loop.

    Used by desktop shells and local development where there is no OS
    notification scheduler to hand off to.
    """

    def __init__(
        self,
        deliver: Callable[[str, NotificationContent], None],
        permission_granted: bool = True,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.deliver = deliver
        self.permission_granted = permission_granted
        self._loop = loop
        self._pending: Dict[str, asyncio.TimerHandle] = {}

    @property
    def pending_identifiers(self) -> List[str]:
        return list(self._pending)

    async def schedule_after(self, identifier: str, delay_seconds: int, content: NotificationContent) -> None:
        if not self.permission_granted:
            raise NotificationPermissionError("Notification permission not granted")
        await self.cancel(identifier)
        loop = self._loop or asyncio.get_running_loop()
        self._pending[identifier] = loop.call_later(delay_seconds, self._fire, identifier, content)

    async def cancel(self, identifier: str) -> None:
        handle = self._pending.pop(identifier, None)
        if handle is not None:
            handle.cancel()

    def dispose(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def _fire(self, identifier: str, content: NotificationContent) -> None:
        self._pending.pop(identifier, None)
        self.deliver(identifier, content)


class LocalNotificationScheduler:
    def __init__(self, platform: NotificationPlatform, clock: Callable[[], int] = now_ms):
        self.platform = platform
        self.clock = clock

    async def schedule(self, entity_id: str, body_text: str, parent_title: str, reminder_at: int) -> bool:
        """Schedule (or replace) the reminder notification. Returns True if one is now pending."""
        seconds_until = js_round((reminder_at - self.clock()) / 1000)
        if seconds_until <= 0:
            return False

        identifier = reminder_identifier(entity_id)
        content = NotificationContent(
            title=REMINDER_TITLE,
            body=f'"{body_text}" — {parent_title}',
            data={"type": "reminder", "entity_id": str(entity_id)},
        )
        try:
            await self.platform.cancel(identifier)
            await self.platform.schedule_after(identifier, seconds_until, content)
        except NotificationPlatformError as e:
            logger.warning(f"[LocalNotifications] Cannot schedule {identifier}: {e}")
            local_notification_failures_total.labels(operation="schedule").inc()
            return False
        except Exception:
            logger.exception(f"[LocalNotifications] Unexpected error scheduling {identifier}")
            local_notification_failures_total.labels(operation="schedule").inc()
            return False
        logger.debug(f"[LocalNotifications] Scheduled {identifier} in {seconds_until}s")
        return True

    async def cancel(self, entity_id: str) -> None:
        identifier = reminder_identifier(entity_id)
        try:
            await self.platform.cancel(identifier)
        except NotificationPlatformError as e:
            logger.warning(f"[LocalNotifications] Cannot cancel {identifier}: {e}")
            local_notification_failures_total.labels(operation="cancel").inc()
        except Exception:
            logger.exception(f"[LocalNotifications] Unexpected error cancelling {identifier}")
            local_notification_failures_total.labels(operation="cancel").inc()

    async def sync(self, action, parent_title: str, deleted: bool = False) -> bool:
        """Bring the local notification in line with the action's current fields.

        Completed, archived, deleted or reminder-less actions lose their
        notification; otherwise it is (re)scheduled for ``action.reminder``.
        """
        state = reminder_state(action, self.clock(), track_sent=False)
        if deleted or state != ReminderState.PENDING:
            await self.cancel(action.id)
            return False
        return await self.schedule(action.id, action.text, parent_title, action.reminder)
