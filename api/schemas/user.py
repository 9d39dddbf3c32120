"""
User Schemas
Pydantic models for user and notification preference requests
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, EmailStr, ConfigDict


class UserCreate(BaseModel):
    """Schema for creating a user"""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    notify_push: bool = True
    notify_email: bool = True
    notify_calendar: bool = False


class NotificationPreferencesUpdate(BaseModel):
    """Partial update of notification flags"""
    notify_push: Optional[bool] = None
    notify_email: Optional[bool] = None
    notify_calendar: Optional[bool] = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    notify_push: bool
    notify_email: bool
    notify_calendar: bool
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
