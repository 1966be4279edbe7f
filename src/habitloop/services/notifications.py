"""Notification inbox."""

from __future__ import annotations

from ..domain.repositories import HabitRepository, NotificationRepository
from ..errors import NotFound, storage_errors
from ..models.habit import HabitStatus
from ..models.notification import Notification, NotificationType


class NotificationInbox:
    def __init__(self, notifications: NotificationRepository, habits: HabitRepository):
        self.notifications = notifications
        self.habits = habits

    def list_for_user(self, user_id: int) -> list[Notification]:
        """Newest first; reminders for habits no longer incomplete are hidden."""

        with storage_errors("list notifications"):
            items = self.notifications.list_for_user(user_id=user_id)
            incomplete = {
                habit.id
                for habit in self.habits.list_all(user_id=user_id)
                if habit.status == HabitStatus.INCOMPLETE.value
            }
        return [
            item
            for item in items
            if item.type != NotificationType.HABIT_REMINDER.value or item.habit_id in incomplete
        ]

    def mark_read(self, user_id: int, notification_id: int) -> Notification:
        with storage_errors("mark notification read"):
            item = self.notifications.mark_read(notification_id, user_id=user_id)
        if item is None:
            raise NotFound("Notification not found.")
        return item

    def delete(self, user_id: int, notification_id: int) -> None:
        with storage_errors("delete notification"):
            deleted = self.notifications.delete(notification_id, user_id=user_id)
        if not deleted:
            raise NotFound("Notification not found.")


__all__ = ["NotificationInbox"]
