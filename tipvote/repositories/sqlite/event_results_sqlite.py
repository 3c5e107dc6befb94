from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Optional

from tipvote.domain.entities.event_result import EventResult
from tipvote.domain.value_objects.ids import EventId

from ..event_results import EventResultsRepo
from .connection import from_db_time, to_db_time
from .errors import translate_errors

_SELECT = """
    SELECT event_id, winner, final_score, half_time_score, market_results,
           completed_at, settled_at
    FROM event_results
"""


def _row_to_result(row: tuple) -> EventResult:
    return EventResult(
        event_id=EventId(row[0]),
        winner=row[1],
        final_score=row[2],
        half_time_score=row[3],
        market_results=row[4],
        completed_at_utc=from_db_time(row[5]),
        settled_at_utc=from_db_time(row[6]),
    )


class EventResultsRepoSqlite(EventResultsRepo):
    """SQLite implementation of :class:`EventResultsRepo`.

    The payload is stored as the JSON text the feed delivered and handed back
    unparsed; reading it is the result extractor's job.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS event_results (
                event_id INTEGER PRIMARY KEY,
                winner TEXT,
                final_score TEXT,
                half_time_score TEXT,
                market_results TEXT,
                completed_at TEXT,
                settled_at TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS ix_event_results_settled ON event_results(settled_at)"
        )
        self._conn.commit()

    def get_by_event(self, event_id: EventId) -> Optional[EventResult]:
        row = self._conn.execute(_SELECT + " WHERE event_id = ?", (event_id,)).fetchone()
        return _row_to_result(row) if row else None

    def list_settled_between(self, start: datetime, end: datetime) -> list[EventResult]:
        rows = self._conn.execute(
            _SELECT + " WHERE settled_at >= ? AND settled_at <= ? ORDER BY settled_at",
            (to_db_time(start), to_db_time(end)),
        ).fetchall()
        return [_row_to_result(r) for r in rows]

    def record(self, result: EventResult) -> None:
        payload = result.market_results
        if payload is not None and not isinstance(payload, str):
            payload = json.dumps(dict(payload))
        with translate_errors("event_results.event_id"), self._conn:
            self._conn.execute(
                """
                INSERT INTO event_results (event_id, winner, final_score, half_time_score,
                                           market_results, completed_at, settled_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.event_id,
                    result.winner,
                    result.final_score,
                    result.half_time_score,
                    payload,
                    to_db_time(result.completed_at_utc),
                    to_db_time(result.settled_at_utc),
                ),
            )
