"""User record, limited to the fields the habit engine reads and writes."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    """Habit owner with timezone, general-streak and rollover bookkeeping."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True, max_length=64)
    display_name: Optional[str] = Field(default=None, max_length=80)
    user_time_zone: Optional[str] = Field(default=None, max_length=64)

    gen_streak_count: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    # Local calendar days, not instants.
    last_streak_increment: Optional[date] = Field(default=None)
    last_streak_update: Optional[date] = Field(default=None)
    last_habit_reset: Optional[date] = Field(default=None)

    is_vacation: bool = Field(default=False, nullable=False)
    notify_habit_reminders: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


class UserHabitLink(SQLModel, table=True):
    """Owner-side habit collection, maintained alongside habit create/delete."""

    __tablename__: ClassVar[str] = "user_habit_link"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
