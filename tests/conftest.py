"""Pytest configuration and shared fixtures for HabitLoop tests.

Every test gets its own temp-file SQLite database, a ``FixedClock`` and a
recording push transport, wired together through ``create_app_context``.
"""

from __future__ import annotations

import itertools
from datetime import date, datetime, timezone

import pytest

from habitloop import create_app
from habitloop.clock import FixedClock, to_storage
from habitloop.config import TestConfig
from habitloop.context import create_app_context
from habitloop.models import Habit, HabitCompletion, User

# Monday 2024-03-04, 10:00 in Africa/Lagos (UTC+1).
START = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


class RecordingPushTransport:
    """Push transport double that keeps every message it was asked to send."""

    def __init__(self):
        self.opened = False
        self.closed = False
        self.fail = False
        self.sent = []

    def open(self) -> None:
        self.opened = True

    def send(self, subscription, message) -> bool:
        if self.fail:
            raise RuntimeError("push endpoint gone")
        self.sent.append((subscription, message))
        return True

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path) -> TestConfig:
    return TestConfig(data_dir=tmp_path / "data")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def push_transport() -> RecordingPushTransport:
    return RecordingPushTransport()


@pytest.fixture
def ctx(config, clock, push_transport):
    """Fully wired application context backed by a fresh database."""

    context = create_app_context(config, clock=clock, push_transport=push_transport)
    yield context
    context.close()


@pytest.fixture
def session_factory(ctx):
    return ctx.session_factory


@pytest.fixture
def app(ctx, config):
    application = create_app(config, context=ctx)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(ctx):
    """Factory for creating users.

    Returns:
        Callable: Function that creates and persists User instances
    """

    counter = itertools.count(1)

    def _create_user(**overrides) -> User:
        n = next(counter)
        data = {"username": f"user{n}", "display_name": f"User {n}"}
        data.update(overrides)
        return ctx.user_repo.create(User(**data))

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default Lagos-based user."""

    return user_factory(user_time_zone="Africa/Lagos")


@pytest.fixture
def habit_factory(ctx, clock):
    """Factory for creating habits straight through the repository.

    Skips the feasibility check and reminder scheduling, so tests can set up
    any state they need.
    """

    def _create_habit(owner: User, **overrides) -> Habit:
        now = to_storage(clock.now())
        data = {
            "title": "Drink water",
            "reminder_time": "08:00",
            "repeat_days": [],
            "target_count": 1,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return ctx.habit_repo.create(Habit(user_id=owner.id, **data), user_id=owner.id)

    return _create_habit


@pytest.fixture
def completion_factory(ctx, clock):
    """Record ``times`` completions of a habit on a given day."""

    def _record(habit: Habit, day: date, times: int = 1) -> HabitCompletion:
        entry = None
        for _ in range(times):
            entry = ctx.completion_repo.increment(
                habit.id, day, user_id=habit.user_id, at=clock.now()
            )
        assert entry is not None
        return entry

    return _record
