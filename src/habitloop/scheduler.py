"""Background task scheduler for the reminder sweep and the streak audit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger(__name__)

REMINDER_SWEEP_JOB = "reminder_sweep"
STREAK_AUDIT_JOB = "streak_audit"


class BackgroundScheduler:
    """Runs the periodic jobs against an application context."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with services and config
        """
        self.ctx = ctx
        self.scheduler: Optional[APScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        config = self.ctx.config
        self.scheduler = APScheduler(timezone="UTC")

        self.scheduler.add_job(
            func=self.run_reminder_sweep,
            trigger=IntervalTrigger(seconds=config.REMINDER_SWEEP_SECONDS),
            id=REMINDER_SWEEP_JOB,
            name="Reminder Sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled reminder sweep every {config.REMINDER_SWEEP_SECONDS}s")

        # Hourly, so every zone's midnight is audited shortly after it passes.
        self.scheduler.add_job(
            func=self.run_streak_audit,
            trigger=CronTrigger(minute=config.STREAK_AUDIT_MINUTE),
            id=STREAK_AUDIT_JOB,
            name="Missed-Day Streak Audit",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled streak audit at minute {config.STREAK_AUDIT_MINUTE} of every hour")

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_reminder_sweep(self) -> None:
        try:
            self.ctx.reminders.run_sweep()
        except Exception as exc:
            logger.error(f"Reminder sweep failed: {exc}", exc_info=True)

    def run_streak_audit(self) -> None:
        try:
            self.ctx.streaks.audit_missed_days()
        except Exception as exc:
            logger.error(f"Streak audit failed: {exc}", exc_info=True)

    def job_ids(self) -> list[str]:
        if self.scheduler is None:
            return []
        return [job.id for job in self.scheduler.get_jobs()]


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Whether to start the scheduler immediately

    Returns:
        BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler


__all__ = ["BackgroundScheduler", "REMINDER_SWEEP_JOB", "STREAK_AUDIT_JOB", "create_scheduler"]
