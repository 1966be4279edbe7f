"""HabitLoop application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable, Optional

from flask import Flask, jsonify
from pydantic import ValidationError

from . import cli as _cli
from .clock import Clock
from .config import BaseConfig, DevConfig, TestConfig
from .context import AppContext, create_app_context
from .errors import HabitLoopError, InvalidArgument
from .extensions import init_context
from .logging_config import get_logger, setup_logging
from .scheduler import create_scheduler
from .services.push import PushTransport

logger = get_logger(__name__)

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths."""

    yield "habitloop.blueprints.habits"
    yield "habitloop.blueprints.notifications"
    yield "habitloop.blueprints.users"


def create_app(
    config: BaseConfig | str | None = None,
    *,
    context: Optional[AppContext] = None,
    clock: Optional[Clock] = None,
    push_transport: Optional[PushTransport] = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``config`` may be a config object or an environment name. Passing a
    prebuilt ``context`` skips building one.
    """

    app = Flask(__name__, instance_relative_config=True)
    if isinstance(config, BaseConfig):
        config_obj = config
    else:
        config_obj = _resolve_config(config)()
    app.config.from_object(config_obj)
    app.config["HABITLOOP_CONFIG"] = config_obj

    setup_logging(config_obj)

    ctx = context or create_app_context(config_obj, clock=clock, push_transport=push_transport)
    scheduler = create_scheduler(ctx, auto_start=config_obj.SCHEDULER_ENABLED)
    init_context(app, ctx, scheduler if scheduler.running else None)

    _register_blueprints(app)
    _register_error_handlers(app)
    _cli.init_app(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HabitLoopError)
    def _habitloop_error(exc: HabitLoopError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}", exc_info=exc)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def _validation_error(exc: ValidationError):
        return _habitloop_error(from_validation_error(exc))


def from_validation_error(exc: ValidationError) -> InvalidArgument:
    """Collapse pydantic errors into one ``InvalidArgument`` with per-field messages."""

    fields: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        fields.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return InvalidArgument("Invalid request payload.", details={"fields": fields})


__all__ = ["AppContext", "BaseConfig", "DevConfig", "TestConfig", "create_app", "create_app_context"]
