"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .clock import Clock
from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelCompletionRepository,
    SQLModelHabitRepository,
    SQLModelNotificationRepository,
    SQLModelUserRepository,
)
from .logging_config import get_logger
from .services.analytics import HabitAnalytics
from .services.feasibility import FeasibilityConfig, FeasibilityEngine
from .services.habits import HabitService
from .services.notifications import NotificationInbox
from .services.push import LoggingPushTransport, PushTransport
from .services.reminders import ReminderScheduler
from .services.rollover import DailyRollover
from .services.streaks import GeneralStreakCalculator
from .services.users import UserSettingsService

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Centralized application context with repositories and services."""

    # Configuration
    config: BaseConfig
    clock: Clock

    # Storage
    engine: Engine
    session_factory: SessionFactory

    # Repositories
    user_repo: SQLModelUserRepository
    habit_repo: SQLModelHabitRepository
    completion_repo: SQLModelCompletionRepository
    notification_repo: SQLModelNotificationRepository

    # Services
    push_transport: PushTransport
    rollover: DailyRollover
    streaks: GeneralStreakCalculator
    reminders: ReminderScheduler
    feasibility: FeasibilityEngine
    habits: HabitService
    analytics: HabitAnalytics
    user_settings: UserSettingsService
    inbox: NotificationInbox

    def close(self) -> None:
        """Release the push transport and the engine's connection pool."""

        try:
            self.push_transport.close()
        finally:
            self.engine.dispose()
            logger.debug("Application context closed")


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Optional[Clock] = None,
    push_transport: Optional[PushTransport] = None,
    feasibility_config: Optional[FeasibilityConfig] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()
    clock = clock or Clock(config.DEFAULT_TIMEZONE)

    # Create database engine and schema
    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    # Initialize repositories
    user_repo = SQLModelUserRepository(session_factory)
    habit_repo = SQLModelHabitRepository(session_factory)
    completion_repo = SQLModelCompletionRepository(session_factory)
    notification_repo = SQLModelNotificationRepository(session_factory)

    transport = push_transport or LoggingPushTransport()
    transport.open()

    rollover = DailyRollover(user_repo, habit_repo, completion_repo, clock)
    streaks = GeneralStreakCalculator(user_repo, habit_repo, completion_repo, clock)
    reminders = ReminderScheduler(
        habit_repo, user_repo, notification_repo, transport, clock, rollover=rollover
    )
    feasibility = FeasibilityEngine(
        habit_repo, completion_repo, user_repo, clock, config=feasibility_config
    )
    habits = HabitService(
        user_repo,
        habit_repo,
        completion_repo,
        clock,
        rollover=rollover,
        streaks=streaks,
        reminders=reminders,
        feasibility=feasibility,
    )

    return AppContext(
        config=config,
        clock=clock,
        engine=engine,
        session_factory=session_factory,
        user_repo=user_repo,
        habit_repo=habit_repo,
        completion_repo=completion_repo,
        notification_repo=notification_repo,
        push_transport=transport,
        rollover=rollover,
        streaks=streaks,
        reminders=reminders,
        feasibility=feasibility,
        habits=habits,
        analytics=HabitAnalytics(user_repo, habit_repo, completion_repo, clock),
        user_settings=UserSettingsService(user_repo, habit_repo, clock, rollover=rollover),
        inbox=NotificationInbox(notification_repo, habit_repo),
    )


__all__ = ["AppContext", "create_app_context"]
