"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from hostpolicy.core.logging import ConsoleFormatter, JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.makeLogRecord(
        {"name": "hostpolicy.test", "levelname": "INFO", "levelno": logging.INFO, "msg": "Fetched"}
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_carries_extra_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record(url="http://h/x", bytes=3)))

    assert payload["message"] == "Fetched"
    assert payload["logger"] == "hostpolicy.test"
    assert payload["extra"] == {"url": "http://h/x", "bytes": 3}


def test_json_formatter_omits_empty_extra() -> None:
    assert "extra" not in json.loads(JsonFormatter().format(_record()))


def test_console_formatter_is_single_line() -> None:
    line = ConsoleFormatter().format(_record(path="/tmp/p", bytes=3))

    assert line == "INFO    hostpolicy.test: Fetched bytes=3 path=/tmp/p"


@pytest.mark.usefixtures("restore_root_logger")
def test_configure_logging_installs_one_handler() -> None:
    configure_logging("warning")
    configure_logging("warning")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.WARNING
    assert logging.getLogger("urllib3").level == logging.WARNING


@pytest.mark.usefixtures("restore_root_logger")
def test_verbose_switches_to_console_debug() -> None:
    configure_logging("INFO", verbose=True)

    root = logging.getLogger()
    assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
    assert root.level == logging.DEBUG
    assert logging.getLogger("requests").level == logging.INFO
