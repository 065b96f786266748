"""
Dream (goal record) and Action (reminder-bearing entity) models.

Timestamps used by the reminder pipeline (``reminder``, ``reminder_sent_at``)
are stored as epoch milliseconds so the countdown and sweep arithmetic never
depends on timezone handling.
"""
from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Boolean, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship, validates

from dreamseeker.db.base import Base
from dreamseeker.reminders.state import ReminderAlreadySentError


def _uuid_str() -> str:
    return str(uuid.uuid4())


class Dream(Base):
    __tablename__ = "dreams"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default="active")  # active, completed, archived
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    actions = relationship("Action", back_populates="dream")

    @property
    def is_archived(self) -> bool:
        return self.status == "archived"


class Action(Base):
    __tablename__ = "actions"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String, nullable=False, index=True)
    dream_id = Column(String(36), ForeignKey("dreams.id"), nullable=False, index=True)
    text = Column(String, nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="active")  # active, archived

    # Epoch milliseconds; NULL means no reminder pipeline runs for this action
    reminder = Column(BigInteger, nullable=True)
    # Write-once: set by the reminder sweep, never cleared
    reminder_sent_at = Column(BigInteger, nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    dream = relationship("Dream", back_populates="actions")

    __table_args__ = (
        Index("ix_actions_reminder_pending", "reminder", "reminder_sent_at"),
    )

    @validates("reminder_sent_at")
    def _validate_reminder_sent_at(self, key, value):
        current = self.reminder_sent_at
        if current is not None and value != current:
            raise ReminderAlreadySentError(self.id, current)
        return value

    @property
    def is_archived(self) -> bool:
        return self.status == "archived"


class DeviceToken(Base):
    __tablename__ = "device_tokens"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String, nullable=False, index=True)
    platform = Column(String, nullable=False, index=True)  # ios, android, web
    fcm_token = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_device_tokens_user_platform", "user_id", "platform"),
    )
