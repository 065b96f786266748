"""
Server-side reminder sweep.

Finds actions whose reminder time has arrived and that have not been sent,
marks them sent and hands one aggregated push per user to the dispatcher.
Marking happens before dispatch: a crash in between may lose a push, but can
never produce a second one.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from dreamseeker.models import Action, Dream
from dreamseeker.utils.timeutils import now_ms
from .dispatcher import PushSender
from .metrics import sweep_runs_total, reminders_marked_sent_total, pushes_enqueued_total
from .repository import ReminderStore
from .state import ReminderState, reminder_state

logger = logging.getLogger(__name__)

DEFAULT_DREAM_TITLE = "your dream"


@dataclass
class SweepResult:
    checked: int = 0
    users: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"checked": self.checked, "users": self.users}


@dataclass
class ReminderNotification:
    user_id: str
    title: str
    body: str
    data: Dict[str, str]


def compose_notification(user_id: str, actions: List[Action], dream_title: Optional[str]) -> ReminderNotification:
    count = len(actions)
    first = actions[0]
    if count == 1:
        title = "Reminder"
        body = f'"{first.text}" — {dream_title or DEFAULT_DREAM_TITLE}'
    else:
        title = f"{count} reminders"
        body = f'"{first.text}" and {count - 1} more'
    return ReminderNotification(
        user_id=user_id,
        title=title,
        body=body,
        data={"type": "reminder", "entity_id": str(first.id)},
    )


class ReminderSweep:
    def __init__(
        self,
        store: ReminderStore,
        push: PushSender,
        clock: Callable[[], int] = now_ms,
        batch_size: Optional[int] = None,
    ):
        self.store = store
        self.push = push
        self.clock = clock
        self.batch_size = batch_size

    def run(self, now: Optional[int] = None) -> SweepResult:
        now = self.clock() if now is None else now
        sweep_runs_total.inc()

        candidates = self.store.query_candidates(now, limit=self.batch_size)
        due = [a for a in candidates if reminder_state(a, now) == ReminderState.DUE_UNSENT]
        if not due:
            return SweepResult()

        dreams = self._resolve_dreams(due)
        valid = [a for a in due if a.dream_id in dreams]

        by_user: "OrderedDict[str, List[Action]]" = OrderedDict()
        for action in valid:
            by_user.setdefault(action.user_id, []).append(action)

        for user_id, user_actions in by_user.items():
            self._process_user(user_id, user_actions, dreams, now)

        result = SweepResult(checked=len(valid), users=len(by_user))
        logger.info(f"[Reminders] Sweep at {now}: due={len(due)} checked={result.checked} users={result.users}")
        return result

    def _resolve_dreams(self, due: List[Action]) -> Dict[str, Dream]:
        """Active parent dreams by id. Missing, archived or unreadable parents are left out."""
        dreams: Dict[str, Dream] = {}
        for dream_id in OrderedDict.fromkeys(a.dream_id for a in due):
            try:
                dream = self.store.get_parent(dream_id)
            except Exception:
                logger.exception(f"[Reminders] Failed to resolve dream {dream_id}; skipping its reminders")
                continue
            if dream is None or dream.is_archived:
                continue
            dreams[dream_id] = dream
        return dreams

    def _process_user(self, user_id: str, actions: List[Action], dreams: Dict[str, Dream], now: int) -> bool:
        try:
            claimed = [a for a in actions if self.store.mark_sent(a.id, now)]
            self.store.commit()
        except Exception:
            logger.exception(f"[Reminders] Failed to mark reminders sent for user {user_id}")
            self.store.rollback()
            return False

        if not claimed:
            logger.info(f"[Reminders] All reminders for user {user_id} already claimed by another sweep")
            return False
        if len(claimed) < len(actions):
            logger.warning(
                f"[Reminders] {len(actions) - len(claimed)} reminder(s) for user {user_id} claimed concurrently"
            )
        reminders_marked_sent_total.inc(len(claimed))

        dream = dreams.get(claimed[0].dream_id)
        notification = compose_notification(user_id, claimed, dream.title if dream else None)
        try:
            self.push.send(notification.user_id, notification.title, notification.body, notification.data)
        except Exception:
            logger.exception(f"[Reminders] Failed to enqueue push for user {user_id}")
            return False
        pushes_enqueued_total.inc()
        return True
