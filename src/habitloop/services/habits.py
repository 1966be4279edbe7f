"""Habit lifecycle: CRUD, the daily status machine and today's view."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..clock import Clock, normalize_weekdays, parse_reminder_time, to_storage, validate_zone, weekday_name
from ..domain.repositories import CompletionRepository, HabitRepository, UserRepository
from ..errors import Conflict, InvalidArgument, NotFound, storage_errors
from ..logging_config import get_logger
from ..models.habit import Habit, HabitStatus
from ..models.user import User
from .feasibility import FeasibilityEngine, FeasibilityVerdict, ProposedHabit
from .reminders import ReminderScheduler
from .rollover import DailyRollover
from .streaks import GeneralStreakCalculator

logger = get_logger(__name__)


@dataclass
class HabitDraft:
    """Caller-supplied habit fields for create and update."""

    title: str
    reminder_time: str
    repeat_days: Sequence[str] = ()
    notes: str = ""
    icon: Optional[str] = None
    target_count: int = 1
    is_public: bool = False
    timezone: Optional[str] = None

    def validated(self) -> "HabitDraft":
        """Return a normalised copy or raise ``InvalidArgument``."""

        title = (self.title or "").strip()
        if not title:
            raise InvalidArgument("Title is required.")
        if not self.reminder_time:
            raise InvalidArgument("Reminder time is required.")
        at = parse_reminder_time(self.reminder_time)
        if int(self.target_count) < 1:
            raise InvalidArgument("Target count must be at least 1.")
        return HabitDraft(
            title=title,
            reminder_time=at.strftime("%H:%M"),
            repeat_days=normalize_weekdays(self.repeat_days),
            notes=(self.notes or "").strip(),
            icon=self.icon,
            target_count=int(self.target_count),
            is_public=bool(self.is_public),
            timezone=validate_zone(self.timezone) if self.timezone else None,
        )

    def proposed(self) -> ProposedHabit:
        return ProposedHabit(
            title=self.title,
            reminder_time=self.reminder_time,
            repeat_days=list(self.repeat_days),
            notes=self.notes,
            target_count=self.target_count,
        )


@dataclass
class HabitCreated:
    habit: Habit
    feasibility: FeasibilityVerdict
    warnings: list[str] = field(default_factory=list)


@dataclass
class StatusChange:
    """Outcome of a status transition.

    The habit write is authoritative. ``ledger_recorded`` and
    ``general_streak`` report whether the follow-up steps succeeded.
    """

    habit: Habit
    previous_status: str
    ledger_recorded: bool = True
    general_streak: Optional[int] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


def parse_status(raw: object) -> HabitStatus:
    if isinstance(raw, HabitStatus):
        return raw
    try:
        return HabitStatus(str(raw).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in HabitStatus)
        raise InvalidArgument(f"Invalid status {raw!r}; expected one of: {allowed}.") from exc


class HabitService:
    """Entry point for everything a client does to its habits."""

    def __init__(
        self,
        users: UserRepository,
        habits: HabitRepository,
        completions: CompletionRepository,
        clock: Clock,
        *,
        rollover: DailyRollover,
        streaks: GeneralStreakCalculator,
        reminders: ReminderScheduler,
        feasibility: FeasibilityEngine,
    ):
        self.users = users
        self.habits = habits
        self.completions = completions
        self.clock = clock
        self.rollover = rollover
        self.streaks = streaks
        self.reminders = reminders
        self.feasibility = feasibility

    def _require_user(self, user_id: int) -> User:
        with storage_errors("load user"):
            user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found.")
        return user

    def _require_habit(self, habit_id: int, user_id: int) -> Habit:
        with storage_errors("load habit"):
            habit = self.habits.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise NotFound("Habit not found.")
        return habit

    # Reads -----------------------------------------------------------------

    def get_active_today(self, user_id: int) -> list[Habit]:
        """Habits scheduled for the user's local today, after the daily rollover."""

        user = self._require_user(user_id)
        self.rollover.run(user_id)
        today = self.clock.today_for(user)
        with storage_errors("list today's habits"):
            return self.habits.list_scheduled_for(
                weekday_name(today), user_id=user_id, include_paused=True
            )

    def list_habits(self, user_id: int) -> list[Habit]:
        self._require_user(user_id)
        self.rollover.run(user_id)
        with storage_errors("list habits"):
            return self.habits.list_all(user_id=user_id)

    def list_public_habits(self, user_id: int) -> list[Habit]:
        self._require_user(user_id)
        with storage_errors("list public habits"):
            return self.habits.list_public(user_id=user_id)

    def get_habit(self, user_id: int, habit_id: int) -> Habit:
        return self._require_habit(habit_id, user_id)

    # Writes ----------------------------------------------------------------

    def check_feasibility(self, user_id: int, draft: HabitDraft) -> FeasibilityVerdict:
        self._require_user(user_id)
        return self.feasibility.evaluate(user_id, draft.validated().proposed())

    def create_habit(self, user_id: int, draft: HabitDraft) -> HabitCreated:
        clean = draft.validated()
        self._require_user(user_id)
        if clean.timezone:
            with storage_errors("update user timezone"):
                self.users.update_fields(user_id, user_time_zone=clean.timezone)

        verdict = self.feasibility.evaluate(user_id, clean.proposed())
        if not verdict.feasible:
            logger.info(
                "Habit rejected by feasibility check",
                extra={"user_id": user_id, "title": clean.title, "reason": verdict.message},
            )
            raise Conflict(verdict.message, verdict=verdict)

        now = to_storage(self.clock.now())
        habit = Habit(
            user_id=user_id,
            title=clean.title,
            icon=clean.icon,
            notes=clean.notes,
            reminder_time=clean.reminder_time,
            repeat_days=list(clean.repeat_days),
            target_count=clean.target_count,
            is_public=clean.is_public,
            status=HabitStatus.INCOMPLETE.value,
            created_at=now,
            updated_at=now,
        )
        with storage_errors("create habit"):
            habit = self.habits.create(habit, user_id=user_id)
        logger.info("Habit created", extra={"user_id": user_id, "habit_id": habit.id})

        warnings = self._schedule_reminder(habit)
        return HabitCreated(habit=habit, feasibility=verdict, warnings=warnings)

    def update_habit(self, user_id: int, habit_id: int, draft: HabitDraft) -> tuple[Habit, list[str]]:
        clean = draft.validated()
        habit = self._require_habit(habit_id, user_id)
        schedule_changed = (
            habit.reminder_time != clean.reminder_time
            or list(habit.repeat_days or []) != list(clean.repeat_days)
        )

        habit.title = clean.title
        habit.icon = clean.icon
        habit.notes = clean.notes
        habit.reminder_time = clean.reminder_time
        habit.repeat_days = list(clean.repeat_days)
        habit.target_count = clean.target_count
        habit.is_public = clean.is_public
        with storage_errors("update habit"):
            habit = self.habits.update(habit, user_id=user_id)

        warnings = self._schedule_reminder(habit) if schedule_changed else []
        return habit, warnings

    def delete_habit(self, user_id: int, habit_id: int) -> None:
        with storage_errors("delete habit"):
            deleted = self.habits.delete(habit_id, user_id=user_id)
        if not deleted:
            raise NotFound("Habit not found.")
        logger.info("Habit deleted", extra={"user_id": user_id, "habit_id": habit_id})
        self._recompute(user_id, [])

    def set_status(self, user_id: int, habit_id: int, status: object) -> StatusChange:
        """Apply one transition of the daily status machine.

        ``paused`` never touches the ledger or streak. A paused habit moving to
        another status behaves like an incomplete one. The habit write must
        succeed; ledger and general-streak follow-ups are best-effort.
        """

        target = parse_status(status)
        user = self._require_user(user_id)
        self.rollover.run(user_id)
        habit = self._require_habit(habit_id, user_id)

        now = self.clock.now()
        today = self.clock.today_for(user)
        previous = HabitStatus(habit.status)
        effective = HabitStatus.INCOMPLETE if previous is HabitStatus.PAUSED else previous

        ledger_action: Optional[str] = None
        if target is HabitStatus.COMPLETE and effective is not HabitStatus.COMPLETE:
            habit.habit_streak += 1
            habit.last_completed = to_storage(now)
            ledger_action = "increment"
        elif target is HabitStatus.INCOMPLETE and effective is HabitStatus.COMPLETE:
            habit.habit_streak = max(0, habit.habit_streak - 1)
            ledger_action = "decrement"
        habit.status = target.value

        with storage_errors("update habit status"):
            habit = self.habits.update(habit, user_id=user_id)

        change = StatusChange(habit=habit, previous_status=previous.value)
        if ledger_action is not None:
            change.ledger_recorded = self._apply_ledger(ledger_action, habit, user_id, today, now, change.warnings)
        change.general_streak = self._recompute(user_id, change.warnings)

        logger.info(
            "Habit status changed",
            extra={
                "user_id": user_id,
                "habit_id": habit_id,
                "from": previous.value,
                "to": target.value,
                "habit_streak": habit.habit_streak,
            },
        )
        return change

    # Best-effort follow-ups ---------------------------------------------------

    def _apply_ledger(
        self, action: str, habit: Habit, user_id: int, today: date, now: datetime, warnings: list[str]
    ) -> bool:
        assert habit.id is not None
        try:
            if action == "increment":
                self.completions.increment(habit.id, today, user_id=user_id, at=now)
            else:
                self.completions.decrement(habit.id, today, user_id=user_id)
            return True
        except Exception as exc:
            logger.error(
                f"Ledger {action} failed for habit {habit.id}: {exc}",
                extra={"user_id": user_id, "habit_id": habit.id, "day": today.isoformat()},
                exc_info=True,
            )
            warnings.append("completion_ledger_unavailable")
            return False

    def _recompute(self, user_id: int, warnings: list[str]) -> Optional[int]:
        try:
            return self.streaks.recompute(user_id)
        except Exception as exc:
            logger.error(f"General streak recompute failed for user {user_id}: {exc}", exc_info=True)
            warnings.append("general_streak_unavailable")
            return None

    def _schedule_reminder(self, habit: Habit) -> list[str]:
        try:
            self.reminders.schedule_next(habit)
            return []
        except Exception as exc:
            logger.error(f"Reminder scheduling failed for habit {habit.id}: {exc}", exc_info=True)
            return ["reminder_not_scheduled"]


__all__ = [
    "HabitCreated",
    "HabitDraft",
    "HabitService",
    "StatusChange",
    "parse_status",
]
