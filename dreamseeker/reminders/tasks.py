import logging
from typing import Dict

from celery import shared_task
from sqlalchemy.orm import Session

from dreamseeker.db.session import SessionLocal
from .config import settings
from .dispatcher import CeleryPushSender, send_push_via_fcm
from .repository import SqlAlchemyReminderStore
from .sweep import ReminderSweep

logger = logging.getLogger(__name__)


@shared_task(name="reminders.check_reminders")
def check_reminders_task() -> Dict[str, int]:
    """Run one reminder sweep. Returns {"checked": n, "users": m}."""
    db: Session = SessionLocal()
    try:
        sweep = ReminderSweep(
            SqlAlchemyReminderStore(db),
            CeleryPushSender(),
            batch_size=settings.SWEEP_BATCH_SIZE,
        )
        return sweep.run().as_dict()
    finally:
        db.close()


@shared_task(name="reminders.dispatch")
def dispatch_task(event: dict) -> dict:
    """Consume the dispatch queue and send the push via FCM."""
    result = send_push_via_fcm(event)
    if not result.success:
        logger.info(f"[Reminders] Dispatch for user {event.get('user_id')} incomplete: {result.errors}")
    return result.as_dict()
