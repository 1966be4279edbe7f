"""SQLModel table exports."""

from .habit import Habit, HabitCompletion, HabitStatus
from .notification import Notification, NotificationStatus, NotificationType, PushSubscription
from .user import User, UserHabitLink

__all__ = [
    "Habit",
    "HabitCompletion",
    "HabitStatus",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "PushSubscription",
    "User",
    "UserHabitLink",
]
