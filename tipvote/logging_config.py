"""Logging configuration for tipvote.

Provides a JSON formatted logger named ``tipvote`` (module loggers are its
children) and a tally of settlement outcomes for job summaries.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from tipvote.domain.value_objects.enums import SettlementOutcome

LOG_NAME = "tipvote"
LOG_FILE = Path("logs/tipvote.log")
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5

# Attributes present on every LogRecord. Anything else is considered an extra field.
DEFAULT_LOG_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """Formatter returning log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short description
        base: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="seconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in DEFAULT_LOG_RECORD_ATTRS
        }
        request_id = extras.pop("request_id", None)
        if request_id is not None:
            base["request_id"] = request_id
        if extras:
            base["extra"] = extras
        if record.exc_info:
            base["exception"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def get_logger(log_file: Path | None = None) -> logging.Logger:
    """Return the configured project logger."""
    logger = logging.getLogger(LOG_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    formatter = JsonFormatter()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.DEBUG)
    stream_handler.setFormatter(formatter)

    path = log_file or LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        path,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    logger.addHandler(stream_handler)
    logger.addHandler(file_handler)
    logger.propagate = False
    return logger


class SettlementTally:
    """Won/lost/void counts of one settlement run."""

    def __init__(self) -> None:
        self._counts: Counter[SettlementOutcome] = Counter()
        self._logger = get_logger()

    def record(self, outcome: SettlementOutcome) -> None:
        self._counts[outcome] += 1

    def count(self, outcome: SettlementOutcome) -> int:
        return self._counts[outcome]

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    @property
    def win_rate(self) -> float:
        """Won share of decided (won or lost) positions, as a percentage."""
        decided = self._counts[SettlementOutcome.WON] + self._counts[SettlementOutcome.LOST]
        return (self._counts[SettlementOutcome.WON] / decided * 100) if decided else 0.0

    def as_dict(self) -> dict[str, int]:
        return {outcome.value.lower(): self._counts[outcome] for outcome in SettlementOutcome}

    def log_summary(self) -> None:
        self._logger.info(
            "Settlement summary",
            extra={**self.as_dict(), "total": self.total, "win_rate": round(self.win_rate, 2)},
        )
