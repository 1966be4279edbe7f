"""Completion ledger repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ...models.habit import HabitCompletion


class CompletionRepository(Protocol):
    """Append/merge store of one record per (habit, day)."""

    def get(self, habit_id: int, occurred_on: date) -> Optional[HabitCompletion]:
        """Return the ledger entry for a habit on a day."""
        ...

    def increment(
        self, habit_id: int, occurred_on: date, *, user_id: int, at: datetime
    ) -> HabitCompletion:
        """Atomically add one completion, creating the day's row if needed."""
        ...

    def decrement(self, habit_id: int, occurred_on: date, *, user_id: int) -> Optional[HabitCompletion]:
        """Remove one completion; the row is deleted when it would reach zero."""
        ...

    def list_for_habit(self, habit_id: int, start: date, end: date) -> list[HabitCompletion]:
        """Ledger entries of one habit within an inclusive day range."""
        ...

    def list_for_user(self, start: date, end: date, *, user_id: int) -> list[HabitCompletion]:
        """Ledger entries across all of a user's habits within a day range."""
        ...

    def counts_on(self, occurred_on: date, *, user_id: int) -> dict[int, int]:
        """Map of habit id to completed count for one day."""
        ...
