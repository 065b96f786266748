from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dreamseeker.db.session import get_db
from dreamseeker.scheduling.deadline import format_deadline, next_tick_delay
from dreamseeker.utils.timeutils import ms_to_datetime, now_ms
from .dispatcher import CeleryPushSender, PushSender
from .repository import SqlAlchemyReminderStore, get_action, upsert_device_token
from .schemas import CountdownRead, DeviceTokenCreate, DeviceTokenRead, SweepRead
from .sweep import ReminderSweep
from .config import settings


router = APIRouter()


def get_push_sender() -> PushSender:
    return CeleryPushSender()


@router.post("/devices", response_model=DeviceTokenRead)
def register_device_endpoint(payload: DeviceTokenCreate, db: Session = Depends(get_db)):
    token = upsert_device_token(db, user_id=payload.user_id, platform=payload.platform, fcm_token=payload.fcm_token)
    return DeviceTokenRead.model_validate(token)


@router.get("/actions/{action_id}/countdown", response_model=CountdownRead)
def action_countdown_endpoint(action_id: str, db: Session = Depends(get_db)):
    action = get_action(db, action_id)
    if not action:
        raise HTTPException(status_code=404, detail="Action not found")
    now = now_ms()
    label = format_deadline(action.reminder, now)
    if label is None:
        return CountdownRead(action_id=action.id, reminder_sent_at=action.reminder_sent_at)
    return CountdownRead(
        action_id=action.id,
        label=label.label,
        is_overdue=label.is_overdue,
        next_tick_ms=next_tick_delay(action.reminder, now),
        reminder_at=ms_to_datetime(action.reminder),
        reminder_sent_at=action.reminder_sent_at,
    )


@router.post("/sweep", response_model=SweepRead)
def run_sweep_endpoint(db: Session = Depends(get_db), push: PushSender = Depends(get_push_sender)):
    """Run one sweep synchronously (operational trigger; beat runs it on a schedule)."""
    sweep = ReminderSweep(SqlAlchemyReminderStore(db), push, batch_size=settings.SWEEP_BATCH_SIZE)
    return SweepRead(**sweep.run().as_dict())
