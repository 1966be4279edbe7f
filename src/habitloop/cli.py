"""Flask CLI commands for HabitLoop."""

from __future__ import annotations

import click

from .extensions import get_context


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitloop-sweep-reminders")
    def habitloop_sweep_reminders() -> None:
        """Fire every reminder that is due now."""

        report = get_context().reminders.run_sweep()
        click.echo(
            f"Processed {report.processed} reminder(s): {report.delivered} delivered, "
            f"{report.rescheduled} rescheduled, {report.failed} failed."
        )

    @app.cli.command("habitloop-audit-streaks")
    def habitloop_audit_streaks() -> None:
        """Reset general streaks whose previous local day was missed."""

        report = get_context().streaks.audit_missed_days()
        click.echo(f"Checked {report.checked} user(s): {report.reset} reset, {report.failed} failed.")

    @app.cli.command("habitloop-rollover")
    @click.option("--user-id", type=int, required=True, help="User whose day should roll over")
    def habitloop_rollover(user_id: int) -> None:
        """Run the daily rollover for one user."""

        applied = get_context().rollover.run(user_id)
        click.echo("Rollover applied." if applied else "Nothing to roll over.")
