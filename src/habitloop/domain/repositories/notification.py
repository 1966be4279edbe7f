"""Notification repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.notification import Notification


class NotificationRepository(Protocol):
    """Store for scheduled and fired reminders."""

    def create(self, notification: Notification) -> Notification:
        ...

    def get_by_id(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        ...

    def list_for_user(self, *, user_id: int) -> list[Notification]:
        """Newest first."""
        ...

    def list_due(self, now: datetime) -> list[Notification]:
        """Pending notifications scheduled at or before ``now``."""
        ...

    def set_status(self, notification_id: int, status: str) -> None:
        ...

    def supersede_pending(self, habit_id: int) -> int:
        """Drop pending reminders of a habit before a new one is scheduled."""
        ...

    def mark_read(self, notification_id: int, *, user_id: int) -> Optional[Notification]:
        ...

    def delete(self, notification_id: int, *, user_id: int) -> bool:
        ...
