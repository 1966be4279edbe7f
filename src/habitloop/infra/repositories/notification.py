"""SQLModel implementation of Notification repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, update
from sqlmodel import select

from ...clock import to_storage
from ...models.notification import Notification, NotificationStatus
from ..database import SessionFactory


class SQLModelNotificationRepository:
    """SQLModel-based notification repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def create(self, notification: Notification) -> Notification:
        with self.session_factory() as session:
            notification.scheduled_for = to_storage(notification.scheduled_for)
            session.add(notification)
            session.commit()
            session.refresh(notification)
            session.expunge(notification)
            return notification

    def get_by_id(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int) -> list[Notification]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Notification)
                    .where(Notification.user_id == user_id)
                    .order_by(Notification.created_at.desc(), Notification.id.desc())  # type: ignore[union-attr]
                ).all()
            )
            session.expunge_all()
            return rows

    def list_due(self, now: datetime) -> list[Notification]:
        """Pending notifications whose scheduled instant has passed."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Notification)
                    .where(Notification.status == NotificationStatus.PENDING.value)
                    .where(Notification.scheduled_for <= to_storage(now))
                    .order_by(Notification.scheduled_for)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def set_status(self, notification_id: int, status: str) -> None:
        with self.session_factory() as session:
            session.exec(  # type: ignore[call-overload]
                update(Notification)
                .where(Notification.id == notification_id)
                .values(status=status)
                .execution_options(synchronize_session=False)
            )
            session.commit()

    def supersede_pending(self, habit_id: int) -> int:
        with self.session_factory() as session:
            result = session.exec(  # type: ignore[call-overload]
                delete(Notification)
                .where(Notification.habit_id == habit_id)
                .where(Notification.status == NotificationStatus.PENDING.value)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return result.rowcount or 0

    def mark_read(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj is None:
                return None
            obj.is_read = True
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            obj = session.exec(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            ).first()
            if obj is None:
                return False
            session.delete(obj)
            session.commit()
            return True


__all__ = ["SQLModelNotificationRepository"]
