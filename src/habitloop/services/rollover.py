"""Lazy per-user daily rollover."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ..clock import Clock, is_scheduled_on
from ..domain.repositories import CompletionRepository, HabitRepository, UserRepository
from ..errors import NotFound, storage_errors
from ..logging_config import get_logger
from ..models.habit import Habit
from ..models.user import User

logger = get_logger(__name__)


class DailyRollover:
    """Resets completed habits once per local day, on the first read of that day."""

    def __init__(
        self,
        users: UserRepository,
        habits: HabitRepository,
        completions: CompletionRepository,
        clock: Clock,
    ):
        self.users = users
        self.habits = habits
        self.completions = completions
        self.clock = clock

    def run(self, user_id: int) -> bool:
        """Return True when a reset happened.

        A user with no rollover marker is stamped with today without any reset.
        Running twice on the same local day leaves state unchanged.
        """

        with storage_errors("run daily rollover"):
            user = self.users.get(user_id)
            if user is None:
                raise NotFound("User not found.")
            today = self.clock.today_for(user)
            last = user.last_habit_reset

            if last is None:
                self.users.update_fields(user_id, last_habit_reset=today)
                return False
            if last >= today:
                return False

            reset = self.habits.reset_completed(user_id=user_id)
            decayed = self._decay_habit_streaks(user, today)
            self.users.update_fields(user_id, last_habit_reset=today)

        logger.info(
            "Daily rollover applied",
            extra={
                "user_id": user_id,
                "day": today.isoformat(),
                "reset": reset,
                "streaks_decayed": decayed,
            },
        )
        return True

    def _decay_habit_streaks(self, user: User, today: date) -> int:
        """Zero the streak of habits that missed their target on their last scheduled day."""

        assert user.id is not None
        if user.is_vacation:
            return 0
        decayed = 0
        for habit in self.habits.list_all(user_id=user.id, include_paused=False):
            if habit.habit_streak <= 0:
                continue
            previous = self.previous_scheduled_day(habit, user, today)
            if previous is None:
                continue
            entry = self.completions.get(habit.id, previous)  # type: ignore[arg-type]
            if entry is not None and entry.completed_count >= habit.target_count:
                continue
            habit.habit_streak = 0
            self.habits.update(habit, user_id=user.id)
            decayed += 1
        return decayed

    def resume(self, user_id: int) -> None:
        """Restart the daily cycle from today without decaying any streak.

        Used when vacation ends: completions from before the break are cleared
        but the skipped days do not count as misses.
        """

        with storage_errors("resume daily rollover"):
            user = self.users.get(user_id)
            if user is None:
                raise NotFound("User not found.")
            today = self.clock.today_for(user)
            reset = 0
            if user.last_habit_reset is None or user.last_habit_reset < today:
                reset = self.habits.reset_completed(user_id=user_id)
            self.users.update_fields(user_id, last_habit_reset=today)
        logger.info(
            "Daily rollover resumed",
            extra={"user_id": user_id, "day": today.isoformat(), "reset": reset},
        )

    def previous_scheduled_day(self, habit: Habit, user: User, today: date) -> Optional[date]:
        created = self.clock.local_date(habit.created_at, user)
        for offset in range(1, 8):
            day = today - timedelta(days=offset)
            if day < created:
                return None
            if is_scheduled_on(habit.repeat_days, day):
                return day
        return None


__all__ = ["DailyRollover"]
