"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from payoffsage.config import BaseConfig
from payoffsage.logging_config import JSONFormatter, get_logger, setup_logging


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=kwargs.pop("level", logging.INFO),
        pathname="test.py",
        lineno=42,
        msg=kwargs.pop("msg", "Test message"),
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    """Test that JSONFormatter correctly formats log records."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["app"] == "PayoffSage"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["location"] == {"module": "test_module", "function": "test_function", "line": 42}
    assert "timestamp" in log_data
    assert "context" not in log_data
    assert "error" not in log_data


def test_json_formatter_includes_extra_fields():
    log_data = json.loads(
        JSONFormatter().format(_record(strategy="avalanche", months=18))
    )

    assert log_data["context"] == {"strategy": "avalanche", "months": 18}


def test_json_formatter_with_exception():
    """Test that JSONFormatter correctly handles exceptions."""
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(
        JSONFormatter().format(_record(level=logging.ERROR, msg="Error occurred", exc_info=exc_info))
    )

    assert log_data["error"]["type"] == "ValueError"
    assert "Test error" in log_data["error"]["message"]
    assert log_data["error"]["traceback"] is not None


def test_setup_logging(tmp_path):
    """Test that logging setup creates log files with rotation."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "payoffsage"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "payoffsage.log"
    assert log_file.exists()

    get_logger("services.debts").warning("Payoff simulation did not converge", extra={"months": 600})

    lines = [line for line in log_file.read_text().splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["message"] == "Payoff simulation did not converge"
    assert entries[-1]["context"]["months"] == 600


def test_setup_logging_is_idempotent(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """Test that get_logger returns properly namespaced loggers."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "payoffsage.module1"
    assert logger2.name == "payoffsage.module2"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Test that console logging level adjusts based on dev mode."""
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level


def test_file_rotation_follows_config(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = str(tmp_path)
    config.LOG_MAX_BYTES = 2048
    config.LOG_BACKUP_COUNT = 2

    logger = setup_logging(config)

    file_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    assert file_handler.maxBytes == 2048
    assert file_handler.backupCount == 2


def test_get_logger_accepts_module_names():
    assert get_logger("payoffsage.services.debts").name == "payoffsage.services.debts"
