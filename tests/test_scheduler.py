"""Tests for the background job scheduler."""

from __future__ import annotations

from habitloop.extensions import get_scheduler
from habitloop.scheduler import REMINDER_SWEEP_JOB, STREAK_AUDIT_JOB, BackgroundScheduler, create_scheduler


def test_scheduler_not_started_has_no_jobs(ctx):
    scheduler = create_scheduler(ctx)

    assert scheduler.running is False
    assert scheduler.job_ids() == []


def test_start_registers_both_jobs(ctx):
    scheduler = create_scheduler(ctx, auto_start=True)
    try:
        assert scheduler.running is True
        assert sorted(scheduler.job_ids()) == sorted([REMINDER_SWEEP_JOB, STREAK_AUDIT_JOB])
    finally:
        scheduler.stop()

    assert scheduler.running is False
    assert scheduler.job_ids() == []


def test_start_twice_is_a_no_op(ctx):
    scheduler = BackgroundScheduler(ctx)
    scheduler.start()
    first = scheduler.scheduler
    try:
        scheduler.start()
        assert scheduler.scheduler is first
    finally:
        scheduler.stop()


def test_job_failures_are_logged_not_raised(ctx, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(ctx.reminders, "run_sweep", broken)
    monkeypatch.setattr(ctx.streaks, "audit_missed_days", broken)
    scheduler = BackgroundScheduler(ctx)

    scheduler.run_reminder_sweep()
    scheduler.run_streak_audit()

    messages = [record.getMessage() for record in caplog.records]
    assert any("Reminder sweep failed" in message for message in messages)
    assert any("Streak audit failed" in message for message in messages)


def test_jobs_run_against_the_context(ctx, user):
    scheduler = BackgroundScheduler(ctx)

    scheduler.run_reminder_sweep()
    scheduler.run_streak_audit()

    assert ctx.user_repo.get(user.id).gen_streak_count == 0


def test_app_scheduler_is_off_in_tests(app):
    assert get_scheduler(app) is None
