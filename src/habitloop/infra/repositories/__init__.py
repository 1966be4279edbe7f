"""Concrete repository implementations using SQLModel."""

from .completion import SQLModelCompletionRepository
from .habit import SQLModelHabitRepository
from .notification import SQLModelNotificationRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelCompletionRepository",
    "SQLModelHabitRepository",
    "SQLModelNotificationRepository",
    "SQLModelUserRepository",
]
