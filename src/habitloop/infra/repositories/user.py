"""SQLModel implementation of the user directory."""

from __future__ import annotations

from typing import Any, Optional

from sqlmodel import select

from ...models.notification import PushSubscription
from ...models.user import User
from ..database import SessionFactory


class SQLModelUserRepository:
    """Reads and writes the streak-relevant user fields."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def create(self, user: User) -> User:
        with self.session_factory() as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def update(self, user: User) -> User:
        with self.session_factory() as session:
            merged = session.merge(user)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def update_fields(self, user_id: int, **fields: Any) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj is None:
                return None
            for name, value in fields.items():
                setattr(obj, name, value)
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def list_streak_holders(self) -> list[User]:
        """Users with a live general streak who are not on vacation."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(User)
                    .where(User.gen_streak_count > 0)
                    .where(User.is_vacation == False)  # noqa: E712
                    .order_by(User.id)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def get_subscription(self, user_id: int) -> Optional[PushSubscription]:
        with self.session_factory() as session:
            obj = session.exec(
                select(PushSubscription).where(PushSubscription.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def save_subscription(self, subscription: PushSubscription) -> PushSubscription:
        """Insert or replace the user's single push subscription."""
        with self.session_factory() as session:
            existing = session.exec(
                select(PushSubscription).where(PushSubscription.user_id == subscription.user_id)
            ).first()
            if existing:
                existing.endpoint = subscription.endpoint
                existing.p256dh = subscription.p256dh
                existing.auth = subscription.auth
                target = existing
            else:
                target = subscription
            session.add(target)
            session.commit()
            session.refresh(target)
            session.expunge(target)
            return target


__all__ = ["SQLModelUserRepository"]
