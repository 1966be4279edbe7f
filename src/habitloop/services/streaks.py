"""General (all-habits-done) streak bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..clock import Clock, weekday_name
from ..domain.repositories import CompletionRepository, HabitRepository, UserRepository
from ..errors import NotFound
from ..logging_config import get_logger
from ..models.habit import HabitStatus
from ..models.user import User

logger = get_logger(__name__)


@dataclass
class AuditReport:
    checked: int = 0
    reset: int = 0
    failed: int = 0


class GeneralStreakCalculator:
    """Credits a day once every active habit scheduled for it is complete.

    ``recompute`` runs after each status change and can also revert the same
    day's credit. ``audit_missed_days`` is the periodic job that zeroes streaks
    whose previous local day was not fully completed.
    """

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

    def recompute(self, user_id: int) -> int:
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found.")
        if user.is_vacation:
            logger.debug("Vacation mode, general streak frozen", extra={"user_id": user_id})
            return user.gen_streak_count

        today = self.clock.today_for(user)
        scheduled = self.habits.list_scheduled_for(weekday_name(today), user_id=user_id)
        all_complete = bool(scheduled) and all(
            h.status == HabitStatus.COMPLETE.value for h in scheduled
        )
        credited_today = user.last_streak_increment == today

        if all_complete and not credited_today:
            count = user.gen_streak_count + 1
            self.users.update_fields(
                user_id,
                gen_streak_count=count,
                longest_streak=max(user.longest_streak, count),
                last_streak_increment=today,
                last_streak_update=today,
            )
            logger.info(
                "General streak incremented",
                extra={"user_id": user_id, "streak": count, "day": today.isoformat()},
            )
            return count

        if credited_today and not all_complete:
            count = max(0, user.gen_streak_count - 1)
            self.users.update_fields(
                user_id,
                gen_streak_count=count,
                last_streak_increment=None,
                last_streak_update=None,
            )
            logger.info(
                "General streak credit reverted",
                extra={"user_id": user_id, "streak": count, "day": today.isoformat()},
            )
            return count

        return user.gen_streak_count

    def day_fully_completed(self, user: User, day: date) -> bool:
        """True when every active habit scheduled on ``day`` met its target.

        Habits created after ``day`` are ignored; a day with nothing scheduled
        counts as complete.
        """

        assert user.id is not None
        scheduled = [
            habit
            for habit in self.habits.list_scheduled_for(weekday_name(day), user_id=user.id)
            if self.clock.local_date(habit.created_at, user) <= day
        ]
        if not scheduled:
            return True
        counts = self.completions.counts_on(day, user_id=user.id)
        return all(counts.get(habit.id, 0) >= habit.target_count for habit in scheduled)  # type: ignore[arg-type]

    def audit_user(self, user: User) -> bool:
        """Reset one user's streak if yesterday was missed; True when reset."""

        today = self.clock.today_for(user)
        yesterday = today - timedelta(days=1)
        if user.last_streak_update in (today, yesterday):
            return False
        if self.day_fully_completed(user, yesterday):
            return False

        assert user.id is not None
        self.users.update_fields(user.id, gen_streak_count=0, last_streak_update=None)
        logger.info(
            "General streak reset after missed day",
            extra={
                "user_id": user.id,
                "previous_streak": user.gen_streak_count,
                "missed_day": yesterday.isoformat(),
            },
        )
        return True

    def audit_missed_days(self) -> AuditReport:
        report = AuditReport()
        for user in self.users.list_streak_holders():
            report.checked += 1
            try:
                if self.audit_user(user):
                    report.reset += 1
            except Exception as exc:
                report.failed += 1
                logger.error(f"Streak audit failed for user {user.id}: {exc}", exc_info=True)
        logger.info(
            "Streak audit finished",
            extra={"checked": report.checked, "reset": report.reset, "failed": report.failed},
        )
        return report


__all__ = ["AuditReport", "GeneralStreakCalculator"]
