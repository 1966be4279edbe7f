"""Tests for the lazy daily rollover."""

from __future__ import annotations

from datetime import date


class TestDailyRollover:
    def test_first_run_only_stamps_the_marker(self, ctx, user, habit_factory):
        habit = habit_factory(user, status="complete")

        assert ctx.rollover.run(user.id) is False

        assert ctx.habit_repo.get(habit.id).status == "complete"
        assert ctx.user_repo.get(user.id).last_habit_reset == date(2024, 3, 4)

    def test_new_day_resets_completed_habits(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")

        clock.advance(days=1)
        assert ctx.rollover.run(user.id) is True

        refreshed = ctx.habit_repo.get(habit.id)
        assert refreshed.status == "incomplete"
        assert refreshed.habit_streak == 1
        # Ledger is untouched by the rollover.
        assert ctx.completion_repo.get(habit.id, date(2024, 3, 4)).completed_count == 1
        assert ctx.user_repo.get(user.id).last_habit_reset == date(2024, 3, 5)

    def test_running_twice_on_the_same_day_is_idempotent(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")
        clock.advance(days=1)
        ctx.rollover.run(user.id)
        ctx.habits.set_status(user.id, habit.id, "complete")

        assert ctx.rollover.run(user.id) is False
        assert ctx.habit_repo.get(habit.id).status == "complete"

    def test_paused_habits_stay_paused(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user, status="paused", habit_streak=3)
        ctx.rollover.run(user.id)
        clock.advance(days=1)

        ctx.rollover.run(user.id)

        refreshed = ctx.habit_repo.get(habit.id)
        assert refreshed.status == "paused"
        assert refreshed.habit_streak == 3

    def test_missed_scheduled_day_zeroes_habit_streak(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")

        clock.advance(days=1)
        ctx.rollover.run(user.id)
        assert ctx.habit_repo.get(habit.id).habit_streak == 1

        clock.advance(days=1)
        ctx.rollover.run(user.id)
        assert ctx.habit_repo.get(habit.id).habit_streak == 0

    def test_unscheduled_days_do_not_break_a_streak(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user, repeat_days=["Monday", "Wednesday"])
        ctx.habits.set_status(user.id, habit.id, "complete")

        # Monday completed; Tuesday is not scheduled, so Wednesday keeps the streak.
        clock.advance(days=2)
        ctx.rollover.run(user.id)

        assert ctx.habit_repo.get(habit.id).habit_streak == 1

    def test_todays_view_runs_the_rollover_first(self, ctx, clock, user, habit_factory):
        habit = habit_factory(user)
        ctx.habits.set_status(user.id, habit.id, "complete")
        clock.advance(days=1)

        habits = ctx.habits.get_active_today(user.id)

        assert [(h.id, h.status) for h in habits] == [(habit.id, "incomplete")]

    def test_todays_view_filters_by_weekday(self, ctx, user, habit_factory):
        daily = habit_factory(user, title="Daily")
        monday = habit_factory(user, title="Mondays", repeat_days=["Monday"])
        habit_factory(user, title="Fridays", repeat_days=["Friday"])

        ids = {h.id for h in ctx.habits.get_active_today(user.id)}

        assert ids == {daily.id, monday.id}

    def test_rollover_follows_the_users_zone(self, ctx, user_factory):
        # 09:00 UTC Monday is still Sunday 23:00 in Honolulu.
        islander = user_factory(user_time_zone="Pacific/Honolulu")

        ctx.rollover.run(islander.id)

        assert ctx.user_repo.get(islander.id).last_habit_reset == date(2024, 3, 3)

    def test_falling_short_of_the_target_zeroes_habit_streak(
        self, ctx, clock, user, habit_factory, completion_factory
    ):
        habit = habit_factory(user, target_count=2, habit_streak=3)
        ctx.rollover.run(user.id)
        completion_factory(habit, date(2024, 3, 4), times=1)

        clock.advance(days=1)
        ctx.rollover.run(user.id)

        assert ctx.habit_repo.get(habit.id).habit_streak == 0

    def test_meeting_the_target_keeps_habit_streak(
        self, ctx, clock, user, habit_factory, completion_factory
    ):
        habit = habit_factory(user, target_count=2, habit_streak=3)
        ctx.rollover.run(user.id)
        completion_factory(habit, date(2024, 3, 4), times=2)

        clock.advance(days=1)
        ctx.rollover.run(user.id)

        assert ctx.habit_repo.get(habit.id).habit_streak == 3

    def test_vacation_keeps_habit_streaks(self, ctx, clock, user_factory, habit_factory):
        traveller = user_factory(user_time_zone="Africa/Lagos", is_vacation=True)
        habit = habit_factory(traveller, habit_streak=3)
        ctx.rollover.run(traveller.id)

        clock.advance(days=2)
        assert ctx.rollover.run(traveller.id) is True

        assert ctx.habit_repo.get(habit.id).habit_streak == 3
