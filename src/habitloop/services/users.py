"""User-level streak and notification settings."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..clock import Clock, validate_zone
from ..domain.repositories import HabitRepository, UserRepository
from ..errors import InvalidArgument, NotFound, storage_errors
from ..logging_config import get_logger
from ..models.notification import PushSubscription
from ..models.user import User
from .rollover import DailyRollover

logger = get_logger(__name__)


class UserSettingsService:
    def __init__(
        self,
        users: UserRepository,
        habits: HabitRepository,
        clock: Clock,
        *,
        rollover: Optional[DailyRollover] = None,
    ):
        self.users = users
        self.habits = habits
        self.clock = clock
        self.rollover = rollover

    def _require_user(self, user_id: int) -> User:
        with storage_errors("load user"):
            user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found.")
        return user

    def _write(self, user_id: int, **fields: Any) -> User:
        with storage_errors("update user"):
            user = self.users.update_fields(user_id, **fields)
        if user is None:
            raise NotFound("User not found.")
        return user

    def toggle_vacation(self, user_id: int) -> User:
        """Flip vacation mode; while on, the general streak is frozen.

        Ending a vacation stamps today as the last streak update and restarts
        the daily rollover, so the days away are not audited as misses.
        """

        user = self._require_user(user_id)
        if not user.is_vacation:
            user = self._write(user_id, is_vacation=True)
        else:
            user = self._write(
                user_id, is_vacation=False, last_streak_update=self.clock.today_for(user)
            )
            if self.rollover is not None:
                self.rollover.resume(user_id)
        logger.info("Vacation mode toggled", extra={"user_id": user_id, "is_vacation": user.is_vacation})
        return user

    def set_timezone(self, user_id: int, zone: str) -> User:
        return self._write(user_id, user_time_zone=validate_zone(zone))

    def update_notification_preferences(self, user_id: int, habit_reminders: bool) -> User:
        return self._write(user_id, notify_habit_reminders=bool(habit_reminders))

    def save_push_subscription(self, user_id: int, subscription: Mapping[str, Any]) -> PushSubscription:
        """Store the browser's subscription, replacing any previous one."""

        self._require_user(user_id)
        endpoint = subscription.get("endpoint")
        keys = subscription.get("keys") or {}
        if not endpoint or not keys.get("p256dh") or not keys.get("auth"):
            raise InvalidArgument("Subscription needs an endpoint and p256dh/auth keys.")
        with storage_errors("save push subscription"):
            saved = self.users.save_subscription(
                PushSubscription(
                    user_id=user_id,
                    endpoint=endpoint,
                    p256dh=keys["p256dh"],
                    auth=keys["auth"],
                )
            )
        logger.info("Push subscription saved", extra={"user_id": user_id})
        return saved

    def streak_summary(self, user_id: int) -> dict[str, Any]:
        user = self._require_user(user_id)
        with storage_errors("list habits"):
            habits = self.habits.list_all(user_id=user_id)
        return {
            "genStreakCount": user.gen_streak_count,
            "longestStreak": user.longest_streak,
            "lastStreakUpdate": user.last_streak_update.isoformat() if user.last_streak_update else None,
            "isVacation": user.is_vacation,
            "totalHabitStreak": sum(h.habit_streak for h in habits),
        }


__all__ = ["UserSettingsService"]
