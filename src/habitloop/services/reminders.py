"""Reminder scheduling and the due-notification sweep."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytz

from ..clock import Clock, localize, parse_reminder_time, weekday_name
from ..domain.repositories import HabitRepository, NotificationRepository, UserRepository
from ..errors import NotFound
from ..logging_config import get_logger
from ..models.habit import Habit, HabitStatus
from ..models.notification import Notification, NotificationStatus, NotificationType
from .push import PushMessage, PushTransport
from .rollover import DailyRollover

logger = get_logger(__name__)

REMINDER_TITLE = "Habit Reminder"


def next_fire_time(
    reminder_time: str,
    repeat_days: Optional[Iterable[str]],
    zone: pytz.BaseTzInfo,
    now: datetime,
) -> datetime:
    """Next instant (UTC) at which ``reminder_time`` occurs in ``zone``.

    Today's slot counts only if it is still strictly in the future. A non-empty
    ``repeat_days`` pushes the day forward to the next listed weekday.
    """

    at = parse_reminder_time(reminder_time)
    day = now.astimezone(zone).date()
    if localize(zone, day, at) <= now:
        day += timedelta(days=1)

    days = list(repeat_days or ())
    if days:
        for _ in range(7):
            if weekday_name(day) in days:
                break
            day += timedelta(days=1)

    return localize(zone, day, at).astimezone(timezone.utc)


@dataclass
class SweepReport:
    processed: int = 0
    delivered: int = 0
    rescheduled: int = 0
    failed: int = 0


class ReminderScheduler:
    """Keeps one pending reminder per habit and fires the due ones."""

    def __init__(
        self,
        habits: HabitRepository,
        users: UserRepository,
        notifications: NotificationRepository,
        transport: PushTransport,
        clock: Clock,
        *,
        rollover: Optional[DailyRollover] = None,
    ):
        self.habits = habits
        self.users = users
        self.notifications = notifications
        self.transport = transport
        self.clock = clock
        self.rollover = rollover

    def schedule_next(self, habit: Habit, now: Optional[datetime] = None) -> Notification:
        """Replace the habit's pending reminder with one at its next fire time."""

        user = self.users.get(habit.user_id)
        if user is None:
            raise NotFound("User not found.")
        now = now or self.clock.now()
        fire_at = next_fire_time(
            habit.reminder_time, habit.repeat_days, self.clock.zone_for(user), now
        )

        assert habit.id is not None
        superseded = self.notifications.supersede_pending(habit.id)
        notification = self.notifications.create(
            Notification(
                user_id=habit.user_id,
                habit_id=habit.id,
                title=REMINDER_TITLE,
                message=f"Time to complete your habit: {habit.title}",
                type=NotificationType.HABIT_REMINDER.value,
                status=NotificationStatus.PENDING.value,
                scheduled_for=fire_at,
            )
        )
        logger.debug(
            "Reminder scheduled",
            extra={
                "habit_id": habit.id,
                "scheduled_for": fire_at.isoformat(),
                "superseded": superseded,
            },
        )
        return notification

    def run_sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """Fire every pending reminder whose instant has passed.

        The owner's daily rollover runs before a habit's status is read, so a
        completion from an earlier local day does not silence today's reminder.
        One failing item is marked FAILED and does not stop the rest.
        """

        now = now or self.clock.now()
        report = SweepReport()
        for notification in self.notifications.list_due(now):
            report.processed += 1
            try:
                habit = self._current_habit(notification)
                if habit is not None and habit.status == HabitStatus.INCOMPLETE.value:
                    if self._deliver(notification, habit):
                        report.delivered += 1
                self.notifications.set_status(notification.id, NotificationStatus.SENT.value)  # type: ignore[arg-type]
                if habit is not None:
                    self.schedule_next(habit, now=now)
                    report.rescheduled += 1
            except Exception as exc:
                report.failed += 1
                logger.error(
                    f"Reminder {notification.id} failed: {exc}",
                    extra={"notification_id": notification.id, "habit_id": notification.habit_id},
                    exc_info=True,
                )
                self._mark_failed(notification)

        if report.processed:
            logger.info(
                "Reminder sweep finished",
                extra={
                    "processed": report.processed,
                    "delivered": report.delivered,
                    "rescheduled": report.rescheduled,
                    "failed": report.failed,
                },
            )
        return report

    def _current_habit(self, notification: Notification) -> Optional[Habit]:
        if not notification.habit_id:
            return None
        habit = self.habits.get(notification.habit_id)
        if habit is None or self.rollover is None:
            return habit
        if self.rollover.run(habit.user_id):
            habit = self.habits.get(notification.habit_id)
        return habit

    def _mark_failed(self, notification: Notification) -> None:
        try:
            self.notifications.set_status(notification.id, NotificationStatus.FAILED.value)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error(
                f"Could not mark reminder {notification.id} as failed: {exc}",
                extra={"notification_id": notification.id},
                exc_info=True,
            )

    def _deliver(self, notification: Notification, habit: Habit) -> bool:
        user = self.users.get(notification.user_id)
        if user is None or not user.notify_habit_reminders:
            return False
        subscription = self.users.get_subscription(notification.user_id)
        if subscription is None:
            return False
        message = PushMessage(
            title=notification.title,
            message=notification.message,
            data={"habitId": habit.id, "notificationId": notification.id},
        )
        try:
            return bool(self.transport.send(subscription, message))
        except Exception as exc:
            logger.warning(
                f"Push delivery failed: {exc}",
                extra={"notification_id": notification.id, "user_id": notification.user_id},
            )
            return False


__all__ = ["REMINDER_TITLE", "ReminderScheduler", "SweepReport", "next_fire_time"]
