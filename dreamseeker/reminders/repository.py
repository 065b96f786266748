from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete

from dreamseeker.models import Action, Dream, DeviceToken


class ReminderStore(ABC):
    """Storage operations the reminder sweep depends on."""

    @abstractmethod
    def query_candidates(self, now: int, limit: Optional[int] = None) -> List[Action]:
        """Actions that are active, not completed, due at ``now`` and not yet sent."""

    @abstractmethod
    def get_parent(self, dream_id: str) -> Optional[Dream]:
        ...

    @abstractmethod
    def mark_sent(self, action_id: str, now: int) -> bool:
        """Set ``reminder_sent_at`` if the action is still due and unsent.

        Returns False when another writer got there first or the action stopped
        being due since it was read.
        """

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class SqlAlchemyReminderStore(ReminderStore):
    def __init__(self, db: Session):
        self.db = db

    def query_candidates(self, now: int, limit: Optional[int] = None) -> List[Action]:
        stmt = (
            select(Action)
            .where(Action.is_completed == False)  # noqa: E712
            .where(Action.status != "archived")
            .where(Action.reminder.is_not(None))
            .where(Action.reminder <= now)
            .where(Action.reminder_sent_at.is_(None))
            .order_by(Action.reminder.asc(), Action.created_at.asc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars())

    def get_parent(self, dream_id: str) -> Optional[Dream]:
        return self.db.get(Dream, dream_id)

    def mark_sent(self, action_id: str, now: int) -> bool:
        # Conditional write: the first sweep to persist the flag owns the send,
        # and only while the action is still due
        result = self.db.execute(
            update(Action)
            .where(Action.id == action_id)
            .where(Action.reminder_sent_at.is_(None))
            .where(Action.is_completed == False)  # noqa: E712
            .where(Action.status != "archived")
            .where(Action.reminder.is_not(None))
            .where(Action.reminder <= now)
            .values(reminder_sent_at=now, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def get_action(db: Session, action_id: str) -> Optional[Action]:
    return db.get(Action, action_id)


def upsert_device_token(db: Session, user_id: str, platform: str, fcm_token: str) -> DeviceToken:
    existing = (
        db.query(DeviceToken)
        .filter(DeviceToken.user_id == user_id, DeviceToken.platform == platform)
        .order_by(DeviceToken.created_at.desc())
        .first()
    )
    if existing:
        existing.fcm_token = fcm_token
        db.add(existing)
        db.commit()
        db.refresh(existing)
        return existing
    token = DeviceToken(user_id=user_id, platform=platform, fcm_token=fcm_token)
    db.add(token)
    db.commit()
    db.refresh(token)
    return token


def list_tokens_for_user(db: Session, user_id: str) -> List[str]:
    rows = (
        db.query(DeviceToken)
        .filter(DeviceToken.user_id == user_id)
        .order_by(DeviceToken.created_at.desc())
        .all()
    )
    return [row.fcm_token for row in rows]


def delete_token(db: Session, fcm_token: str) -> int:
    result = db.execute(delete(DeviceToken).where(DeviceToken.fcm_token == fcm_token))
    db.commit()
    return result.rowcount
