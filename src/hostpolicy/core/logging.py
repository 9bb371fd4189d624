"""Logging configuration for the client and generated artifacts.

Diagnostics go to stderr, one JSON object per line. ``--verbose`` switches
to a readable single-line console format at DEBUG level. Structured fields
passed through ``extra={...}`` are carried by both formats.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_QUIET_LOGGERS = ("urllib3", "requests")


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the structured fields attached to *record* via ``extra``."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = record_fields(record)
        if fields:
            payload["extra"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """``LEVEL logger: message key=value ...`` for interactive runs."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        parts = [f"{record.levelname:<7} {record.name}: {record.getMessage()}"]
        parts.extend(f"{key}={value}" for key, value in sorted(record_fields(record).items()))
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str, *, verbose: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Stdout stays reserved for user-facing output: configuration dumps,
    transport listings and policy log flushes.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(ConsoleFormatter() if verbose else JsonFormatter())
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
