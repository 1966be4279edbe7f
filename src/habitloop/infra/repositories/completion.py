"""SQLModel implementation of the completion ledger."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...clock import to_storage
from ...logging_config import get_logger
from ...models.habit import HabitCompletion
from ..database import SessionFactory

logger = get_logger(__name__)


class SQLModelCompletionRepository:
    """Ledger keyed by (habit_id, occurred_on), merged rather than appended."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def _fetch(self, session: Session, habit_id: int, occurred_on: date) -> Optional[HabitCompletion]:
        obj = session.exec(
            select(HabitCompletion).where(
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.occurred_on == occurred_on,
            )
        ).first()
        if obj:
            session.expunge(obj)
        return obj

    def get(self, habit_id: int, occurred_on: date) -> Optional[HabitCompletion]:
        with self.session_factory() as session:
            return self._fetch(session, habit_id, occurred_on)

    def _bump_existing(self, habit_id: int, occurred_on: date, stamp: datetime) -> Optional[HabitCompletion]:
        """Increment in place; None when the day has no row yet."""
        with self.session_factory() as session:
            result = session.exec(  # type: ignore[call-overload]
                update(HabitCompletion)
                .where(
                    HabitCompletion.habit_id == habit_id,
                    HabitCompletion.occurred_on == occurred_on,
                )
                .values(
                    completed_count=HabitCompletion.completed_count + 1,
                    completed_at=stamp,
                )
                .execution_options(synchronize_session=False)
            )
            session.commit()
            if not result.rowcount:
                return None
            return self._fetch(session, habit_id, occurred_on)

    def _insert_first(
        self, habit_id: int, occurred_on: date, *, user_id: int, stamp: datetime
    ) -> HabitCompletion:
        with self.session_factory() as session:
            entry = HabitCompletion(
                habit_id=habit_id,
                user_id=user_id,
                occurred_on=occurred_on,
                completed_count=1,
                completed_at=stamp,
            )
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def increment(
        self, habit_id: int, occurred_on: date, *, user_id: int, at: datetime
    ) -> HabitCompletion:
        """Upsert-with-increment for one habit/day."""
        stamp = to_storage(at)
        entry = self._bump_existing(habit_id, occurred_on, stamp)
        if entry is not None:
            return entry
        try:
            return self._insert_first(habit_id, occurred_on, user_id=user_id, stamp=stamp)
        except IntegrityError:
            # A concurrent writer created the row between our UPDATE and INSERT.
            logger.info(
                "Ledger insert raced, folding into existing row",
                extra={"habit_id": habit_id, "occurred_on": occurred_on.isoformat()},
            )
            entry = self._bump_existing(habit_id, occurred_on, stamp)
            if entry is None:
                raise
            return entry

    def decrement(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitCompletion]:
        """Remove one completion, deleting the row instead of storing zero."""
        with self.session_factory() as session:
            where = (
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.occurred_on == occurred_on,
                HabitCompletion.user_id == user_id,
            )
            result = session.exec(  # type: ignore[call-overload]
                update(HabitCompletion)
                .where(*where, HabitCompletion.completed_count > 1)
                .values(completed_count=HabitCompletion.completed_count - 1)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                session.exec(  # type: ignore[call-overload]
                    delete(HabitCompletion)
                    .where(*where)
                    .execution_options(synchronize_session=False)
                )
            session.commit()
            return self._fetch(session, habit_id, occurred_on)

    def list_for_habit(self, habit_id: int, start: date, end: date) -> list[HabitCompletion]:
        """Get entries for a habit within a date range."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(HabitCompletion)
                    .where(HabitCompletion.habit_id == habit_id)
                    .where(HabitCompletion.occurred_on >= start)
                    .where(HabitCompletion.occurred_on <= end)
                    .order_by(HabitCompletion.occurred_on)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def list_for_user(self, start: date, end: date, *, user_id: int) -> list[HabitCompletion]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(HabitCompletion)
                    .where(HabitCompletion.user_id == user_id)
                    .where(HabitCompletion.occurred_on >= start)
                    .where(HabitCompletion.occurred_on <= end)
                    .order_by(HabitCompletion.occurred_on)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def counts_on(self, occurred_on: date, *, user_id: int) -> dict[int, int]:
        return {
            entry.habit_id: entry.completed_count
            for entry in self.list_for_user(occurred_on, occurred_on, user_id=user_id)
        }


__all__ = ["SQLModelCompletionRepository"]
