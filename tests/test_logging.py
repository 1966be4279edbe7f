"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from habitloop.config import TestConfig
from habitloop.logging_config import JSONFormatter, get_logger, setup_logging


def _record(level=logging.INFO, msg="Test message", exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


def test_json_formatter():
    """Test that JSONFormatter correctly formats log records."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_exception():
    """Test that JSONFormatter correctly handles exceptions."""
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(JSONFormatter().format(_record(logging.ERROR, "Error occurred", exc_info)))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_json_formatter_keeps_extra_fields():
    record = _record()
    record.user_id = 7
    record.day = "2024-03-04"

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"user_id": 7, "day": "2024-03-04"}


def test_json_formatter_ignores_asctime_from_other_handlers():
    record = _record()
    # A text formatter on another handler has already run on this record.
    record.asctime = "2024-03-04 09:00:00,000"
    record.user_id = 7

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"user_id": 7}


def test_setup_logging(tmp_path):
    """Test that logging setup creates log files with rotation."""
    config = TestConfig(tmp_path)

    logger = setup_logging(config)

    assert logger.name == "habitloop"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "habitloop.log"
    assert log_file.exists()

    get_logger("rollover").info("Daily rollover applied", extra={"user_id": 1})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["logger"] == "habitloop.rollover"
    assert entries[-1]["extra"] == {"user_id": 1}


def test_setup_logging_twice_does_not_duplicate_handlers(tmp_path):
    config = TestConfig(tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """Test that get_logger returns properly namespaced loggers."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "habitloop.module1"
    assert logger2.name == "habitloop.module2"
    assert logger1 != logger2


def test_get_logger_accepts_module_names():
    logger = get_logger("habitloop.services.reminders")

    assert logger.name == "habitloop.services.reminders"
    assert get_logger("habitloop") is logging.getLogger("habitloop")


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Test that console logging level adjusts based on dev mode."""
    config = TestConfig(tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    assert console_handler.level == (logging.INFO if dev_mode else logging.WARNING)
    assert logger.level == (logging.DEBUG if dev_mode else logging.INFO)
