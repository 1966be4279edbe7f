"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HabitStatus(str, Enum):
    """Daily status a habit can be in."""

    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    PAUSED = "paused"


class Habit(SQLModel, table=True):
    """A recurring commitment owned by exactly one user."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=120)
    icon: Optional[str] = Field(default=None, max_length=64)
    notes: str = Field(default="", max_length=500)

    reminder_time: str = Field(nullable=False, max_length=5)  # local HH:MM
    # Empty list means every day.
    repeat_days: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    target_count: int = Field(default=1, nullable=False)
    is_public: bool = Field(default=False, nullable=False)

    status: str = Field(default=HabitStatus.INCOMPLETE.value, nullable=False, max_length=16)
    habit_streak: int = Field(default=0, nullable=False)
    last_completed: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    @property
    def is_paused(self) -> bool:
        return self.status == HabitStatus.PAUSED.value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "icon": self.icon,
            "notes": self.notes,
            "reminderTime": self.reminder_time,
            "repeatDays": list(self.repeat_days or []),
            "target_count": self.target_count,
            "is_public": self.is_public,
            "status": self.status,
            "habitStreak": self.habit_streak,
            "lastCompleted": self.last_completed.isoformat() if self.last_completed else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class HabitCompletion(SQLModel, table=True):
    """Ledger entry: how often a habit was completed on one calendar day."""

    __tablename__: ClassVar[str] = "habit_completion"
    __table_args__ = (UniqueConstraint("habit_id", "occurred_on", name="uq_completion_habit_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    completed_count: int = Field(default=1, nullable=False)
    completed_at: datetime = Field(default_factory=_utcnow, nullable=False)
