"""Repository protocol definitions for domain layer."""

from .completion import CompletionRepository
from .habit import HabitRepository
from .notification import NotificationRepository
from .user import UserRepository

__all__ = [
    "CompletionRepository",
    "HabitRepository",
    "NotificationRepository",
    "UserRepository",
]
