from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class DeviceTokenCreate(BaseModel):
    """Schema for registering a device push token"""
    user_id: str
    platform: str = Field(..., pattern="^(ios|android|web)$")
    fcm_token: str


class DeviceTokenRead(BaseModel):
    """Schema for reading device tokens"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    platform: str
    fcm_token: str
    created_at: datetime
    updated_at: datetime


class CountdownRead(BaseModel):
    """Current countdown label for an action reminder"""
    action_id: str
    label: Optional[str] = None
    is_overdue: bool = False
    next_tick_ms: Optional[int] = None
    reminder_at: Optional[datetime] = None
    reminder_sent_at: Optional[int] = None


class SweepRead(BaseModel):
    checked: int
    users: int
