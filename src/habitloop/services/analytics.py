"""Read-only views over the completion ledger."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

import pytz

from ..clock import WEEKDAYS, Clock, from_storage, weekday_name
from ..domain.repositories import CompletionRepository, HabitRepository, UserRepository
from ..errors import NotFound, storage_errors

TIME_OF_DAY_BUCKETS = ("morning", "afternoon", "evening")


def compute_streaks(successful_days: Iterable[date], *, today: date | None = None) -> tuple[int, int]:
    """Return (current_streak, longest_streak) from a collection of successful days."""

    today = today or date.today()
    days_set = set(successful_days)

    # Current streak: walk backwards from today until a gap. An unfinished
    # today does not break a run that ended yesterday.
    current = 0
    cursor = today if today in days_set else today - timedelta(days=1)
    while cursor in days_set:
        current += 1
        cursor -= timedelta(days=1)

    # Longest streak: sweep through sorted days, counting consecutive runs.
    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(days_set):
        if last_day is None or d == last_day + timedelta(days=1):
            run += 1
        else:
            longest = max(longest, run)
            run = 1
        last_day = d
    longest = max(longest, run)

    return current, longest


def time_of_day_bucket(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "evening"


class HabitAnalytics:
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

    def completion_history(self, user_id: int, habit_id: int, days: int = 180) -> dict[str, Any]:
        """Per-day completion counts for the trailing ``days`` local days.

        Days before the habit existed map to None.
        """

        with storage_errors("load completion history"):
            user = self.users.get(user_id)
            habit = self.habits.get_by_id(habit_id, user_id=user_id) if user else None
            if user is None or habit is None:
                raise NotFound("Habit not found.")
            today = self.clock.today_for(user)
            start = today - timedelta(days=max(days, 1) - 1)
            entries = {
                entry.occurred_on: entry.completed_count
                for entry in self.completions.list_for_habit(habit_id, start, today)
            }

        created = self.clock.local_date(habit.created_at, user)
        history: dict[str, Optional[int]] = {}
        cursor = start
        while cursor <= today:
            history[cursor.isoformat()] = None if cursor < created else entries.get(cursor, 0)
            cursor += timedelta(days=1)

        successful = [day for day, count in entries.items() if count >= habit.target_count]
        current, longest = compute_streaks(successful, today=today)
        tracked = [count for count in history.values() if count is not None]
        return {
            "habitId": habit.id,
            "history": history,
            "totalDays": len(tracked),
            "completedDays": sum(1 for count in tracked if count > 0),
            "targetCount": habit.target_count,
            "currentRun": current,
            "longestRun": longest,
        }

    def performance_analytics(self, user_id: int, days: int = 90) -> dict[str, Any]:
        """Completion share by time of day and by weekday over the window."""

        with storage_errors("load performance analytics"):
            user = self.users.get(user_id)
            if user is None:
                raise NotFound("User not found.")
            today = self.clock.today_for(user)
            start = today - timedelta(days=max(days, 1) - 1)
            habits = {h.id: h for h in self.habits.list_all(user_id=user_id)}
            entries = [
                entry
                for entry in self.completions.list_for_user(start, today, user_id=user_id)
                if entry.habit_id in habits
            ]

        zone = self.clock.zone_for(user)
        completed_by_time: Counter[str] = Counter()
        target_by_time: Counter[str] = Counter()
        completed_by_day: Counter[str] = Counter()
        target_by_day: Counter[str] = Counter()
        for entry in entries:
            target = habits[entry.habit_id].target_count
            bucket = time_of_day_bucket(_local_hour(entry.completed_at, zone))
            completed_by_time[bucket] += entry.completed_count
            target_by_time[bucket] += target
            day_name = weekday_name(entry.occurred_on)
            completed_by_day[day_name] += entry.completed_count
            target_by_day[day_name] += target

        return {
            "timeOfDay": {
                bucket: _percentage(completed_by_time[bucket], target_by_time[bucket])
                for bucket in TIME_OF_DAY_BUCKETS
            },
            "dayOfWeek": {
                day: _percentage(completed_by_day[day], target_by_day[day]) for day in WEEKDAYS
            },
            "totalCompletions": sum(entry.completed_count for entry in entries),
            "dateRange": {"start": start.isoformat(), "end": today.isoformat()},
        }


def _local_hour(stored: datetime, zone: pytz.BaseTzInfo) -> int:
    return from_storage(stored).astimezone(zone).hour  # type: ignore[union-attr]


def _percentage(completed: int, target: int) -> int:
    if not target:
        return 0
    return round(completed / target * 100)


__all__ = ["HabitAnalytics", "TIME_OF_DAY_BUCKETS", "compute_streaks", "time_of_day_bucket"]
