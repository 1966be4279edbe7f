"""Feasibility check run before a new habit is persisted.

The verdict is advisory. Rejections come back as ``feasible=False`` verdicts,
and internal failures degrade to a permissive low-confidence approval instead
of raising.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Protocol, Sequence

from ..clock import Clock, is_scheduled_on, parse_reminder_time
from ..domain.repositories import CompletionRepository, HabitRepository, UserRepository
from ..logging_config import get_logger
from ..models.habit import Habit

logger = get_logger(__name__)

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

_DEFAULT_KEYWORDS = (
    ("workout", 45),
    ("exercise", 45),
    ("gym", 60),
    ("run", 30),
    ("jog", 30),
    ("meditation", 20),
    ("meditate", 20),
    ("read", 30),
    ("study", 45),
    ("journal", 15),
    ("write", 30),
    ("cook", 30),
    ("clean", 20),
    ("water", 2),
    ("vitamin", 1),
    ("stretch", 10),
)


@dataclass(frozen=True)
class FeasibilityConfig:
    """Thresholds for the admission heuristic (minutes, counts, ratios)."""

    max_daily_habit_time: int = 180
    max_weekly_habit_time: int = 720
    max_daily_habits: int = 8
    # Weekly occurrences; 8 daily habits x 7 days.
    max_weekly_habits: int = 56
    min_completion_rate: float = 0.70
    high_completion_rate: float = 0.85
    min_streak_for_stacking: int = 7
    optimal_streak_for_stacking: int = 21
    time_conflict_window: int = 30
    daily_time_warning_ratio: float = 0.8
    completion_window_days: int = 30
    min_habit_age_days: int = 7
    default_habit_time: int = 15
    keyword_minutes: tuple[tuple[str, int], ...] = _DEFAULT_KEYWORDS


class DurationEstimator(Protocol):
    def estimate(self, text: str) -> int:
        """Minutes one occurrence of the described habit takes."""
        ...


class KeywordDurationEstimator:
    """Explicit "<N> min/hour" mentions first, then keywords, then a default."""

    _EXPLICIT = re.compile(r"(\d+)\s*(hours?|hrs?|minutes?|mins?)\b")

    def __init__(self, config: FeasibilityConfig):
        self.default_minutes = config.default_habit_time
        self._keywords = [
            (re.compile(rf"\b{re.escape(word)}"), minutes) for word, minutes in config.keyword_minutes
        ]

    def estimate(self, text: str) -> int:
        lowered = (text or "").lower()
        match = self._EXPLICIT.search(lowered)
        if match:
            value = int(match.group(1))
            return value * 60 if match.group(2).startswith("h") else value
        for pattern, minutes in self._keywords:
            if pattern.search(lowered):
                return minutes
        return self.default_minutes


@dataclass
class ProposedHabit:
    """The parts of a not-yet-created habit the heuristic looks at."""

    title: str
    reminder_time: str
    repeat_days: Sequence[str] = ()
    notes: str = ""
    target_count: int = 1


@dataclass
class FeasibilityMetrics:
    current_habit_count: int = 0
    estimated_time_load: int = 0
    daily_time_estimate: float = 0.0
    total_daily_habits: int = 0
    total_weekly_habits: int = 0
    mature_habit_count: int = 0
    avg_completion_rate: float = 0.0
    avg_streak_duration: float = 0.0
    time_conflicts: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class FeasibilityVerdict:
    feasible: bool = True
    confidence: str = CONFIDENCE_HIGH
    message: str = "You're ready to add this habit."
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    metrics: FeasibilityMetrics = field(default_factory=FeasibilityMetrics)

    def reject(self, message: str, confidence: str = CONFIDENCE_LOW) -> "FeasibilityVerdict":
        self.feasible = False
        self.confidence = confidence
        self.message = message
        return self

    @classmethod
    def fallback(cls) -> "FeasibilityVerdict":
        return cls(
            feasible=True,
            confidence=CONFIDENCE_LOW,
            message="Could not fully evaluate feasibility, but you can proceed.",
            warnings=["Feasibility check encountered an error."],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "feasible": self.feasible,
            "confidence": self.confidence,
            "message": self.message,
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
            "metrics": asdict(self.metrics),
        }


def weekly_frequency(repeat_days: Iterable[str] | None) -> int:
    days = list(repeat_days or ())
    return len(days) if days else 7


def _minutes_apart(first: str, second: str) -> int:
    """Distance between two HH:MM wall-clock times, wrapping at midnight."""

    a = parse_reminder_time(first)
    b = parse_reminder_time(second)
    diff = abs((a.hour * 60 + a.minute) - (b.hour * 60 + b.minute))
    return min(diff, 24 * 60 - diff)


class FeasibilityEngine:
    """Accept, warn about, or reject a proposed habit for a user."""

    def __init__(
        self,
        habits: HabitRepository,
        completions: CompletionRepository,
        users: UserRepository,
        clock: Clock,
        config: Optional[FeasibilityConfig] = None,
        estimator: Optional[DurationEstimator] = None,
    ):
        self.habits = habits
        self.completions = completions
        self.users = users
        self.clock = clock
        self.config = config or FeasibilityConfig()
        self.estimator = estimator or KeywordDurationEstimator(self.config)

    def evaluate(self, user_id: int, proposed: ProposedHabit) -> FeasibilityVerdict:
        try:
            return self._evaluate(user_id, proposed)
        except Exception:
            logger.error(
                "Feasibility evaluation failed, allowing with low confidence",
                extra={"user_id": user_id, "title": proposed.title},
                exc_info=True,
            )
            return FeasibilityVerdict.fallback()

    def _estimate(self, title: str, notes: str | None) -> int:
        return self.estimator.estimate(f"{title} {notes or ''}")

    def _evaluate(self, user_id: int, proposed: ProposedHabit) -> FeasibilityVerdict:
        cfg = self.config
        user = self.users.get(user_id)
        today = self.clock.today_for(user)
        existing = self.habits.list_all(user_id=user_id, include_paused=False)

        verdict = FeasibilityVerdict()
        metrics = verdict.metrics
        metrics.current_habit_count = len(existing)

        new_frequency = weekly_frequency(proposed.repeat_days)
        total_weekly_time = self._estimate(proposed.title, proposed.notes) * new_frequency
        total_daily_habits = 0 if proposed.repeat_days else 1
        total_weekly_habits = new_frequency
        for habit in existing:
            frequency = weekly_frequency(habit.repeat_days)
            total_weekly_time += self._estimate(habit.title, habit.notes) * frequency
            total_weekly_habits += frequency
            if not habit.repeat_days:
                total_daily_habits += 1

        metrics.estimated_time_load = total_weekly_time
        metrics.daily_time_estimate = round(total_weekly_time / 7, 1)
        metrics.total_daily_habits = total_daily_habits
        metrics.total_weekly_habits = total_weekly_habits

        if total_daily_habits >= cfg.max_daily_habits:
            return verdict.reject(
                "You have too many daily habits. Consider reducing frequency or pausing some habits."
            )
        if total_weekly_habits >= cfg.max_weekly_habits:
            return verdict.reject(
                "Your weekly habit load is too high. Try reducing the frequency of this habit."
            )
        if total_weekly_time >= cfg.max_weekly_habit_time:
            return verdict.reject(
                "Adding this habit would exceed your weekly time budget. "
                "Consider shorter habits or reducing frequency."
            )

        if total_weekly_time / 7 >= cfg.max_daily_habit_time * cfg.daily_time_warning_ratio:
            verdict.warnings.append("Your daily habit time is approaching the recommended limit.")
            verdict.confidence = CONFIDENCE_MEDIUM

        conflicts = self._time_conflicts(proposed.reminder_time, existing)
        metrics.time_conflicts = conflicts
        if conflicts:
            names = ", ".join(conflict["habitTitle"] for conflict in conflicts)
            verdict.warnings.append(f"Time conflict detected with: {names}")
            verdict.suggestions.append(
                "Consider adjusting the reminder time to avoid conflicts with existing habits."
            )
            verdict.confidence = CONFIDENCE_MEDIUM

        mature = [h for h in existing if self._age_days(h, user, today) >= cfg.min_habit_age_days]
        metrics.mature_habit_count = len(mature)
        if not mature:
            return verdict

        rates = [
            rate
            for rate in (self.completion_rate(h, user, today) for h in mature)
            if rate is not None
        ]
        metrics.avg_completion_rate = round(sum(rates) / len(rates), 3) if rates else 0.0
        metrics.avg_streak_duration = round(sum(h.habit_streak for h in mature) / len(mature), 2)

        if metrics.avg_completion_rate < cfg.min_completion_rate:
            verdict.suggestions.append(
                f"Try to achieve at least {cfg.min_completion_rate:.0%} completion rate "
                "on your current habits before adding more."
            )
            return verdict.reject(
                "Focus on improving your current habits before adding new ones. "
                "Your completion rate needs improvement."
            )
        if metrics.avg_streak_duration < cfg.min_streak_for_stacking:
            verdict.suggestions.append(
                f"Build a streak of at least {cfg.min_streak_for_stacking} days "
                "on your current habits before adding new ones."
            )
            return verdict.reject(
                "Wait a bit longer before adding new habits. "
                "Let your current habits become more established.",
                confidence=CONFIDENCE_MEDIUM,
            )
        if (
            metrics.avg_completion_rate < cfg.high_completion_rate
            or metrics.avg_streak_duration < cfg.optimal_streak_for_stacking
        ):
            verdict.confidence = CONFIDENCE_MEDIUM
            verdict.message = "You can add this habit, but consider waiting for better consistency."
            verdict.warnings.append(
                "Your current habits could be more established before adding new ones."
            )
            return verdict

        verdict.confidence = CONFIDENCE_HIGH
        verdict.message = "Excellent! Your consistency makes you ready for a new challenge."
        return verdict

    def _time_conflicts(self, reminder_time: str, existing: Iterable[Habit]) -> list[dict[str, Any]]:
        conflicts = []
        for habit in existing:
            gap = _minutes_apart(reminder_time, habit.reminder_time)
            if gap <= self.config.time_conflict_window:
                conflicts.append(
                    {
                        "habitId": habit.id,
                        "habitTitle": habit.title,
                        "reminderTime": habit.reminder_time,
                        "timeDifference": gap,
                    }
                )
        return conflicts

    def _age_days(self, habit: Habit, user, today: date) -> int:
        return (today - self.clock.local_date(habit.created_at, user)).days

    def completion_rate(self, habit: Habit, user, today: date) -> Optional[float]:
        """Share of scheduled days in the trailing window that met the target.

        Today is excluded because it is not over yet. Returns None when the
        window holds no scheduled day.
        """

        created = self.clock.local_date(habit.created_at, user)
        end = today - timedelta(days=1)
        start = max(today - timedelta(days=self.config.completion_window_days), created)
        if end < start:
            return None

        expected: set[date] = set()
        cursor = start
        while cursor <= end:
            if is_scheduled_on(habit.repeat_days, cursor):
                expected.add(cursor)
            cursor += timedelta(days=1)
        if not expected:
            return None

        assert habit.id is not None
        successful = sum(
            1
            for entry in self.completions.list_for_habit(habit.id, start, end)
            if entry.occurred_on in expected and entry.completed_count >= habit.target_count
        )
        return successful / len(expected)


__all__ = [
    "CONFIDENCE_HIGH",
    "CONFIDENCE_LOW",
    "CONFIDENCE_MEDIUM",
    "DurationEstimator",
    "FeasibilityConfig",
    "FeasibilityEngine",
    "FeasibilityMetrics",
    "FeasibilityVerdict",
    "KeywordDurationEstimator",
    "ProposedHabit",
    "weekly_frequency",
]
