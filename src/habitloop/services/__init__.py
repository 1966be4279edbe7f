"""Service module exports."""

from . import (
    analytics,
    feasibility,
    habits,
    notifications,
    push,
    reminders,
    rollover,
    streaks,
    users,
)

__all__ = [
    "analytics",
    "feasibility",
    "habits",
    "notifications",
    "push",
    "reminders",
    "rollover",
    "streaks",
    "users",
]
