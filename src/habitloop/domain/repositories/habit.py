"""Habit repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.habit import Habit


class HabitRepository(Protocol):
    """Repository for managing habit entities."""

    def get(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID regardless of owner (background sweeps)."""
        ...

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID, scoped to its owner."""
        ...

    def list_all(self, *, user_id: int, include_paused: bool = True) -> list[Habit]:
        """List the user's habits, newest first."""
        ...

    def list_public(self, *, user_id: int) -> list[Habit]:
        """List habits the user marked public."""
        ...

    def list_scheduled_for(
        self, weekday: str, *, user_id: int, include_paused: bool = False
    ) -> list[Habit]:
        """Habits whose repeat set is empty or contains ``weekday``."""
        ...

    def habit_ids(self, *, user_id: int) -> list[int]:
        """Owner-side habit id collection."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a habit and its owner link in one transaction."""
        ...

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist changes to an existing habit."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit with its link, ledger and pending reminders."""
        ...

    def reset_completed(self, *, user_id: int) -> int:
        """Move every complete habit of the user back to incomplete."""
        ...
