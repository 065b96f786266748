"""
Per-action reminder state machine.

    NONE ──(reminder set)──> PENDING ──(clock passes reminder)──> DUE_UNSENT ──(sweep)──> SENT

NONE covers "no reminder", completed and archived actions. SENT is terminal:
``reminder_sent_at`` is a historical fact and later changes to ``reminder``
never move an action back out of it.
"""
from enum import Enum
from typing import Optional


class ReminderState(str, Enum):
    NONE = "none"
    PENDING = "pending"
    DUE_UNSENT = "due_unsent"
    SENT = "sent"


class ReminderAlreadySentError(RuntimeError):
    """Raised when something tries to overwrite a reminder's sent timestamp."""

    def __init__(self, action_id: Optional[str], sent_at: int):
        super().__init__(f"Reminder for action {action_id} already sent at {sent_at}")
        self.action_id = action_id
        self.sent_at = sent_at


def reminder_state(action, now: int, track_sent: bool = True) -> ReminderState:
    """Current state of ``action`` at ``now``.

    With ``track_sent=False`` the server sent flag is ignored, which is the view
    a device-local notification needs: it follows ``reminder`` even after the
    sweep has already pushed once.
    """
    if track_sent and action.reminder_sent_at is not None:
        return ReminderState.SENT
    if action.is_completed or action.is_archived or action.reminder is None:
        return ReminderState.NONE
    if action.reminder <= now:
        return ReminderState.DUE_UNSENT
    return ReminderState.PENDING


def mark_sent(action, now: int) -> None:
    """Guarded DUE_UNSENT -> SENT transition on an in-memory action."""
    state = reminder_state(action, now)
    if state == ReminderState.SENT:
        raise ReminderAlreadySentError(action.id, action.reminder_sent_at)
    if state != ReminderState.DUE_UNSENT:
        raise ValueError(f"Action {action.id} is not due (state={state.value})")
    action.reminder_sent_at = now
