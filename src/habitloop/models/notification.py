"""Reminder notifications and push subscriptions."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    HABIT_REMINDER = "HABIT_REMINDER"
    STREAK_MILESTONE = "STREAK_MILESTONE"


class Notification(SQLModel, table=True):
    """One scheduled or fired reminder."""

    __tablename__: ClassVar[str] = "notification"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    # Plain reference: fired reminders outlive the habit they were for.
    habit_id: Optional[int] = Field(default=None, index=True)
    title: str = Field(nullable=False, max_length=120)
    message: str = Field(nullable=False, max_length=255)
    type: str = Field(default=NotificationType.HABIT_REMINDER.value, max_length=32)
    status: str = Field(default=NotificationStatus.PENDING.value, index=True, max_length=16)
    is_read: bool = Field(default=False, nullable=False)
    scheduled_for: datetime = Field(nullable=False, index=True)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "habitId": self.habit_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "status": self.status,
            "isRead": self.is_read,
            "scheduledFor": self.scheduled_for.isoformat(),
        }


class PushSubscription(SQLModel, table=True):
    """Browser push endpoint stored for a user."""

    __tablename__: ClassVar[str] = "push_subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, unique=True, index=True)
    endpoint: str = Field(nullable=False, max_length=500)
    p256dh: str = Field(nullable=False, max_length=255)
    auth: str = Field(nullable=False, max_length=255)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
