"""Context and scheduler wiring for the Flask app."""

from __future__ import annotations

from typing import Optional

from flask import Flask, current_app

from .context import AppContext
from .logging_config import get_logger
from .scheduler import BackgroundScheduler

logger = get_logger(__name__)

EXTENSION_KEY = "habitloop"


def init_context(app: Flask, ctx: AppContext, scheduler: Optional[BackgroundScheduler] = None) -> None:
    """Attach the application context (and optional scheduler) to ``app``."""

    app.extensions[EXTENSION_KEY] = {"context": ctx, "scheduler": scheduler}


def get_context(app: Optional[Flask] = None) -> AppContext:
    """Return the context of ``app`` or of the active Flask app."""

    target = app or current_app
    state = target.extensions.get(EXTENSION_KEY)
    if state is None:  # pragma: no cover - misconfigured app
        raise RuntimeError("HabitLoop context not initialized")
    return state["context"]


def get_scheduler(app: Optional[Flask] = None) -> Optional[BackgroundScheduler]:
    target = app or current_app
    state = target.extensions.get(EXTENSION_KEY) or {}
    return state.get("scheduler")


def shutdown(app: Flask) -> None:
    """Stop the scheduler and close the context attached to ``app``."""

    state = app.extensions.pop(EXTENSION_KEY, None)
    if state is None:
        return
    scheduler = state.get("scheduler")
    if scheduler is not None:
        scheduler.stop()
    state["context"].close()
    logger.info("HabitLoop app shut down")


__all__ = ["EXTENSION_KEY", "get_context", "get_scheduler", "init_context", "shutdown"]
