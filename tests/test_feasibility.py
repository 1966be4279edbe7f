"""Tests for the habit feasibility check."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from habitloop.errors import Conflict
from habitloop.services.feasibility import (
    FeasibilityConfig,
    FeasibilityEngine,
    KeywordDurationEstimator,
    ProposedHabit,
)
from habitloop.services.habits import HabitDraft

TODAY = date(2024, 3, 4)
TEN_DAYS_AGO = datetime(2024, 2, 23, 9, 0)


@pytest.fixture
def estimator():
    return KeywordDurationEstimator(FeasibilityConfig())


class TestDurationEstimator:
    @pytest.mark.parametrize(
        "text, minutes",
        [
            ("Workout 45 min", 45),
            ("Read for 1 hour", 60),
            ("Practice piano 2 hrs", 120),
            ("Go to the gym", 60),
            ("Morning running", 30),
            ("Call mom", 15),
            ("Sunday brunch", 15),
        ],
    )
    def test_estimates(self, estimator, text, minutes):
        assert estimator.estimate(text) == minutes

    def test_explicit_duration_beats_keywords(self, estimator):
        assert estimator.estimate("Gym 20 minutes") == 20


def _mature_habit(habit_factory, completion_factory, owner, *, streak, completed_days):
    habit = habit_factory(owner, title="Drink water", reminder_time="07:00", created_at=TEN_DAYS_AGO, habit_streak=streak)
    for offset in range(1, completed_days + 1):
        completion_factory(habit, TODAY - timedelta(days=offset))
    return habit


class TestLoadCeilings:
    def test_new_user_is_approved_with_high_confidence(self, ctx, user):
        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Drink water", reminder_time="08:00"))

        assert verdict.feasible is True
        assert verdict.confidence == "high"
        assert verdict.metrics.current_habit_count == 0

    def test_weekly_time_budget_rejects_a_long_workout(self, ctx, user, habit_factory):
        habit_factory(user, title="Read 30 min", reminder_time="06:00")
        habit_factory(user, title="Journal 30 min", reminder_time="12:00")
        habit_factory(user, title="Study 40 min", reminder_time="21:00")

        verdict = ctx.feasibility.evaluate(
            user.id, ProposedHabit(title="Workout 45 min", reminder_time="17:00")
        )

        assert verdict.feasible is False
        assert verdict.confidence == "low"
        assert "weekly time budget" in verdict.message
        assert verdict.metrics.estimated_time_load == 700 + 315

    def test_too_many_daily_habits(self, ctx, user, habit_factory):
        for hour in range(7):
            habit_factory(user, title=f"Stretch {hour}", reminder_time=f"{hour * 3:02d}:00")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch again", reminder_time="22:00"))

        assert verdict.feasible is False
        assert "too many daily habits" in verdict.message
        assert verdict.metrics.total_daily_habits == 8

    def test_paused_habits_do_not_count_towards_load(self, ctx, user, habit_factory):
        for hour in range(7):
            habit_factory(user, title=f"Stretch {hour}", reminder_time=f"{hour * 3:02d}:00", status="paused")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch again", reminder_time="22:00"))

        assert verdict.feasible is True

    def test_heavy_daily_time_warns(self, ctx, user, habit_factory):
        engine = FeasibilityEngine(
            ctx.habit_repo,
            ctx.completion_repo,
            ctx.user_repo,
            ctx.clock,
            config=FeasibilityConfig(max_daily_habit_time=60),
        )
        habit_factory(user, title="Deep work 100 min", reminder_time="06:00", repeat_days=["Monday"])

        verdict = engine.evaluate(
            user.id,
            ProposedHabit(title="Practice 500 min", reminder_time="12:00", repeat_days=["Saturday"]),
        )

        assert verdict.feasible is True
        assert verdict.confidence == "medium"
        assert any("approaching" in w for w in verdict.warnings)


class TestTimeConflicts:
    def test_nearby_reminder_warns(self, ctx, user, habit_factory):
        habit_factory(user, title="Drink water", reminder_time="08:00")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="08:20"))

        assert verdict.feasible is True
        assert verdict.confidence == "medium"
        assert verdict.warnings == ["Time conflict detected with: Drink water"]
        assert verdict.metrics.time_conflicts[0]["timeDifference"] == 20

    def test_conflicts_wrap_around_midnight(self, ctx, user, habit_factory):
        habit_factory(user, title="Vitamin", reminder_time="23:50")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Journal", reminder_time="00:10"))

        assert verdict.metrics.time_conflicts[0]["timeDifference"] == 20

    def test_distant_reminders_do_not_conflict(self, ctx, user, habit_factory):
        habit_factory(user, title="Drink water", reminder_time="08:00")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="09:00"))

        assert verdict.metrics.time_conflicts == []
        assert verdict.confidence == "high"


class TestReadiness:
    def test_poor_completion_rate_rejects(self, ctx, user, habit_factory, completion_factory):
        _mature_habit(habit_factory, completion_factory, user, streak=0, completed_days=2)

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is False
        assert verdict.confidence == "low"
        assert verdict.metrics.avg_completion_rate == pytest.approx(0.2)

    def test_short_streaks_ask_to_wait(self, ctx, user, habit_factory, completion_factory):
        _mature_habit(habit_factory, completion_factory, user, streak=3, completed_days=10)

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is False
        assert verdict.confidence == "medium"
        assert verdict.message.startswith("Wait a bit longer")

    def test_good_but_not_great_history_is_a_soft_yes(self, ctx, user, habit_factory, completion_factory):
        _mature_habit(habit_factory, completion_factory, user, streak=10, completed_days=10)

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is True
        assert verdict.confidence == "medium"

    def test_excellent_history_is_a_strong_yes(self, ctx, user, habit_factory, completion_factory):
        _mature_habit(habit_factory, completion_factory, user, streak=25, completed_days=10)

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is True
        assert verdict.confidence == "high"
        assert verdict.message.startswith("Excellent")
        assert verdict.metrics.avg_completion_rate == 1.0

    def test_young_habits_are_not_judged(self, ctx, user, habit_factory):
        habit_factory(user, title="Drink water", reminder_time="07:00")

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is True
        assert verdict.metrics.mature_habit_count == 0


class TestFailureHandling:
    def test_internal_error_degrades_to_permissive_low_confidence(self, ctx, user, monkeypatch):
        def broken_list_all(**kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(ctx.habit_repo, "list_all", broken_list_all)

        verdict = ctx.feasibility.evaluate(user.id, ProposedHabit(title="Stretch", reminder_time="18:00"))

        assert verdict.feasible is True
        assert verdict.confidence == "low"
        assert verdict.warnings == ["Feasibility check encountered an error."]

    def test_rejected_habit_is_not_created(self, ctx, user, habit_factory):
        habit_factory(user, title="Read 30 min", reminder_time="06:00")
        habit_factory(user, title="Journal 30 min", reminder_time="12:00")
        habit_factory(user, title="Study 40 min", reminder_time="21:00")

        with pytest.raises(Conflict) as excinfo:
            ctx.habits.create_habit(user.id, HabitDraft(title="Workout 45 min", reminder_time="17:00"))

        assert excinfo.value.verdict.feasible is False
        assert excinfo.value.to_dict()["details"]["feasibility"]["feasible"] is False
        assert len(ctx.habit_repo.list_all(user_id=user.id)) == 3
