"""Tests for configure_logging output, format and level handling."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from order_functions.core.config import LogSettings
from order_functions.core.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


def test_file_output_writes_redacted_json_lines(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "orders.log"
    configure_logging(
        LogSettings(level="INFO", format="json", output="file", file_path=str(log_file), max_bytes=1024)
    )

    (handler,) = restore_root_logger.handlers
    assert isinstance(handler, RotatingFileHandler)

    logging.getLogger("order_functions.tests").info(
        "email.sent",
        extra={"order_id": "3f2b8c1a", "recipient": "maria@example.com"},
    )
    handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert record["message"] == "email.sent"
    assert record["order_id"] == "3f2b8c1a"
    assert record["recipient"] == "[REDACTED]"


def test_file_output_without_rotation(tmp_path, restore_root_logger):
    configure_logging(
        LogSettings(output="file", file_path=str(tmp_path / "orders.log"), max_bytes=0)
    )

    (handler,) = restore_root_logger.handlers
    assert type(handler) is logging.FileHandler


def test_plain_format_uses_text_formatter(restore_root_logger):
    configure_logging(LogSettings(format="plain", output="stdout"))

    (handler,) = restore_root_logger.handlers
    assert not isinstance(handler.formatter, JsonFormatter)


def test_httpx_request_logs_stay_at_warning(restore_root_logger):
    configure_logging(LogSettings(level="DEBUG", output="stdout"))

    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
