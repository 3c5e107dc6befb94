from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

import tipvote.logging_config as logging_config
from tipvote.domain.entities.event_result import EventResult
from tipvote.domain.entities.position import Position
from tipvote.domain.value_objects.enums import CreatorRole, Market
from tipvote.domain.value_objects.ids import EventId, UserId

NOW = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_logger(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Keep the project logger's file handler inside the test's tmp dir."""
    monkeypatch.setattr(logging_config, "LOG_FILE", tmp_path / "logs" / "tipvote.log")
    logger = logging.getLogger(logging_config.LOG_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def conn() -> Generator[sqlite3.Connection, None, None]:
    c = sqlite3.connect(":memory:")
    c.execute("PRAGMA foreign_keys = ON;")
    yield c
    c.close()


def make_position(**overrides: Any) -> Position:
    data: dict[str, Any] = {
        "event_id": EventId(100),
        "creator_id": UserId(7),
        "creator_role": CreatorRole.USER,
        "market": Market.MATCH_RESULT,
        "selection": "Home",
        "odds": Decimal("1.85"),
        "created_at_utc": NOW - timedelta(days=1),
    }
    data.update(overrides)
    return Position(**data)


def make_result(**overrides: Any) -> EventResult:
    data: dict[str, Any] = {
        "event_id": EventId(100),
        "winner": None,
        "final_score": "2-1",
        "market_results": None,
        "settled_at_utc": NOW,
    }
    data.update(overrides)
    return EventResult(**data)
