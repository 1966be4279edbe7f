"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, update
from sqlmodel import select

from ...models.habit import Habit, HabitCompletion, HabitStatus
from ...models.notification import Notification, NotificationStatus
from ...models.user import UserHabitLink
from ..database import SessionFactory


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID regardless of owner."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, include_paused: bool = True) -> list[Habit]:
        """List the user's habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at.desc(), Habit.id.desc())  # type: ignore[union-attr]
            )
            if not include_paused:
                statement = statement.where(Habit.status != HabitStatus.PAUSED.value)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_public(self, *, user_id: int) -> list[Habit]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Habit).where(Habit.user_id == user_id, Habit.is_public == True)  # noqa: E712
                ).all()
            )
            session.expunge_all()
            return rows

    def list_scheduled_for(
        self, weekday: str, *, user_id: int, include_paused: bool = False
    ) -> list[Habit]:
        """Habits whose repeat set is empty or contains ``weekday``."""
        # repeat_days is a JSON column; membership is checked in Python so the
        # query stays portable across SQLite and server databases.
        habits = self.list_all(user_id=user_id, include_paused=include_paused)
        return [h for h in habits if not h.repeat_days or weekday in h.repeat_days]

    def habit_ids(self, *, user_id: int) -> list[int]:
        with self.session_factory() as session:
            return list(
                session.exec(
                    select(UserHabitLink.habit_id)
                    .where(UserHabitLink.user_id == user_id)
                    .order_by(UserHabitLink.habit_id)
                ).all()
            )

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit and register it in the owner's collection."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.flush()
            session.add(UserHabitLink(user_id=user_id, habit_id=habit.id))
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            habit.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit by ID together with everything it owns."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            session.exec(  # type: ignore[call-overload]
                delete(UserHabitLink).where(
                    UserHabitLink.user_id == user_id, UserHabitLink.habit_id == habit_id
                )
            )
            session.exec(  # type: ignore[call-overload]
                delete(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
            )
            session.exec(  # type: ignore[call-overload]
                delete(Notification).where(
                    Notification.habit_id == habit_id,
                    Notification.status == NotificationStatus.PENDING.value,
                )
            )
            session.delete(habit)
            session.commit()
            return True

    def reset_completed(self, *, user_id: int) -> int:
        """Bulk-transition complete habits back to incomplete."""
        with self.session_factory() as session:
            result = session.exec(  # type: ignore[call-overload]
                update(Habit)
                .where(Habit.user_id == user_id, Habit.status == HabitStatus.COMPLETE.value)
                .values(status=HabitStatus.INCOMPLETE.value)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return result.rowcount or 0


__all__ = ["SQLModelHabitRepository"]
