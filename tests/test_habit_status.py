"""Tests for the daily habit status machine."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from habitloop.errors import InvalidArgument, NotFound
from habitloop.models.habit import HabitStatus

MONDAY = date(2024, 3, 4)


class TestCompleting:
    def test_incomplete_to_complete_records_completion(self, ctx, user, habit_factory):
        habit = habit_factory(user)

        change = ctx.habits.set_status(user.id, habit.id, "complete")

        assert change.previous_status == "incomplete"
        assert change.habit.status == HabitStatus.COMPLETE.value
        assert change.habit.habit_streak == 1
        assert change.habit.last_completed is not None
        assert change.ledger_recorded is True
        assert change.warnings == []
        entry = ctx.completion_repo.get(habit.id, MONDAY)
        assert entry is not None
        assert entry.completed_count == 1

    def test_complete_to_complete_is_a_no_op(self, ctx, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")

        change = ctx.habits.set_status(user.id, habit.id, "complete")

        assert change.habit.habit_streak == 1
        assert ctx.completion_repo.get(habit.id, MONDAY).completed_count == 1

    def test_status_is_case_insensitive(self, ctx, user, habit_factory):
        habit = habit_factory(user)

        change = ctx.habits.set_status(user.id, habit.id, " Complete ")

        assert change.habit.status == "complete"

    def test_enum_status_is_accepted(self, ctx, user, habit_factory):
        habit = habit_factory(user)

        change = ctx.habits.set_status(user.id, habit.id, HabitStatus.COMPLETE)

        assert change.habit.status == "complete"
        assert change.habit.habit_streak == 1


class TestReverting:
    def test_complete_to_incomplete_undoes_the_completion(self, ctx, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")

        change = ctx.habits.set_status(user.id, habit.id, "incomplete")

        assert change.habit.status == "incomplete"
        assert change.habit.habit_streak == 0
        assert ctx.completion_repo.get(habit.id, MONDAY) is None

    def test_streak_never_goes_negative(self, ctx, user, habit_factory):
        habit = habit_factory(user, status="complete", habit_streak=0)

        change = ctx.habits.set_status(user.id, habit.id, "incomplete")

        assert change.habit.habit_streak == 0
        assert change.ledger_recorded is True

    def test_incomplete_to_incomplete_changes_nothing(self, ctx, user, habit_factory):
        habit = habit_factory(user, habit_streak=4)

        change = ctx.habits.set_status(user.id, habit.id, "incomplete")

        assert change.habit.habit_streak == 4
        assert ctx.completion_repo.get(habit.id, MONDAY) is None


class TestPausing:
    def test_pausing_a_completed_habit_keeps_streak_and_ledger(self, ctx, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")

        change = ctx.habits.set_status(user.id, habit.id, "paused")

        assert change.habit.status == "paused"
        assert change.habit.habit_streak == 1
        assert ctx.completion_repo.get(habit.id, MONDAY).completed_count == 1

    def test_paused_to_complete_behaves_like_incomplete(self, ctx, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "paused")

        change = ctx.habits.set_status(user.id, habit.id, "complete")

        assert change.previous_status == "paused"
        assert change.habit.habit_streak == 1
        assert ctx.completion_repo.get(habit.id, MONDAY).completed_count == 1

    def test_paused_to_incomplete_leaves_ledger_alone(self, ctx, user, habit_factory):
        habit = habit_factory(user, habit_streak=2)
        ctx.habits.set_status(user.id, habit.id, "paused")

        change = ctx.habits.set_status(user.id, habit.id, "incomplete")

        assert change.habit.habit_streak == 2
        assert ctx.completion_repo.get(habit.id, MONDAY) is None


class TestRejections:
    def test_invalid_status_is_rejected_before_any_change(self, ctx, user, habit_factory):
        habit = habit_factory(user)

        with pytest.raises(InvalidArgument):
            ctx.habits.set_status(user.id, habit.id, "done")

        assert ctx.habit_repo.get(habit.id).status == "incomplete"

    def test_unknown_habit_is_not_found(self, ctx, user):
        with pytest.raises(NotFound):
            ctx.habits.set_status(user.id, 4242, "complete")

    def test_habit_of_another_user_is_not_found(self, ctx, user, user_factory, habit_factory):
        stranger = user_factory()
        habit = habit_factory(stranger)

        with pytest.raises(NotFound):
            ctx.habits.set_status(user.id, habit.id, "complete")


class TestBestEffortFollowUps:
    def test_ledger_failure_does_not_undo_the_status_change(
        self, ctx, user, habit_factory, monkeypatch
    ):
        habit = habit_factory(user)

        def broken_increment(*args, **kwargs):
            raise OperationalError("UPDATE habit_completion", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ctx.completion_repo, "increment", broken_increment)

        change = ctx.habits.set_status(user.id, habit.id, "complete")

        assert change.habit.status == "complete"
        assert change.habit.habit_streak == 1
        assert change.ledger_recorded is False
        assert "completion_ledger_unavailable" in change.warnings
        assert change.degraded
        assert ctx.habit_repo.get(habit.id).status == "complete"

    def test_streak_recompute_failure_is_reported(self, ctx, user, habit_factory, monkeypatch):
        habit = habit_factory(user)

        def broken_recompute(user_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(ctx.streaks, "recompute", broken_recompute)

        change = ctx.habits.set_status(user.id, habit.id, "complete")

        assert change.habit.status == "complete"
        assert change.general_streak is None
        assert "general_streak_unavailable" in change.warnings
