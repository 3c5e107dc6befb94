from __future__ import annotations

import sqlite3
from decimal import Decimal
from typing import Optional

from tipvote.domain.entities.position import Position
from tipvote.domain.value_objects.enums import CreatorRole, Market, PositionStatus, TargetType
from tipvote.domain.value_objects.ids import EventId, PositionId, TargetId, UserId
from tipvote.domain.value_objects.vote_counters import VoteCounters

from ..positions import PositionsRepo
from .connection import from_db_time, to_db_time
from .counters_sqlite import CounterStoreSqlite
from .errors import translate_errors

_SELECT = """
    SELECT p.position_id, p.event_id, p.creator_id, p.creator_role, p.market, p.selection,
           p.odds, p.status, p.created_at, p.settled_at, p.is_deleted,
           COALESCE(t.upvotes, 0), COALESCE(t.downvotes, 0), COALESCE(t.voters, 0)
    FROM positions p
    LEFT JOIN vote_targets t ON t.target_type = 1 AND t.target_id = p.position_id
"""


def _row_to_position(row: tuple) -> Position:
    return Position(
        id=PositionId(row[0]),
        event_id=EventId(row[1]),
        creator_id=UserId(row[2]),
        creator_role=CreatorRole(row[3]),
        market=Market(row[4]),
        selection=row[5],
        odds=Decimal(row[6]),
        status=PositionStatus(row[7]),
        created_at_utc=from_db_time(row[8]),
        settled_at_utc=from_db_time(row[9]),
        is_deleted=bool(row[10]),
        counters=VoteCounters(upvotes=row[11], downvotes=row[12], voters=row[13]),
    )


class PositionsRepoSqlite(PositionsRepo):
    """SQLite implementation of :class:`PositionsRepo`.

    Inserting a position also materializes its vote counters, in the same
    transaction.

    Example:
        >>> import sqlite3
        >>> conn = sqlite3.connect(":memory:")
        >>> repo = PositionsRepoSqlite(conn)
        >>> pid = repo.insert(position)
        >>> repo.get_by_id(pid).status
        <PositionStatus.PENDING: 'PENDING'>
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._counters = CounterStoreSqlite(conn)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS positions (
                position_id INTEGER PRIMARY KEY,
                event_id INTEGER NOT NULL,
                creator_id INTEGER NOT NULL,
                creator_role TEXT NOT NULL DEFAULT 'USER' CHECK(creator_role IN ('USER','EXPERT')),
                market TEXT NOT NULL,
                selection TEXT NOT NULL,
                odds TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'PENDING'
                    CHECK(status IN ('PENDING','WON','LOST','VOID')),
                created_at TEXT NOT NULL,
                settled_at TEXT,
                is_deleted INTEGER NOT NULL DEFAULT 0 CHECK(is_deleted IN (0,1))
            )
            """
        )
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS ix_positions_event_status ON positions(event_id, status)"
        )
        self._conn.commit()

    def get_by_id(self, position_id: PositionId) -> Optional[Position]:
        row = self._conn.execute(_SELECT + " WHERE p.position_id = ?", (position_id,)).fetchone()
        return _row_to_position(row) if row else None

    def insert(self, position: Position) -> PositionId:
        with translate_errors("positions.pk"), self._conn:
            cur = self._conn.execute(
                """
                INSERT INTO positions (position_id, event_id, creator_id, creator_role, market,
                                       selection, odds, status, created_at, settled_at, is_deleted)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    position.id,
                    position.event_id,
                    position.creator_id,
                    position.creator_role.value,
                    position.market.value,
                    position.selection,
                    str(position.odds),
                    position.status.value,
                    to_db_time(position.created_at_utc),
                    to_db_time(position.settled_at_utc),
                    int(position.is_deleted),
                ),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite insert failed: no lastrowid (table: positions)")
            self._counters.initialize(TargetType.POSITION, TargetId(int(rowid)))
            if position.is_deleted:
                self._counters.mark_deleted(TargetType.POSITION, TargetId(int(rowid)))
        return PositionId(int(rowid))

    def list_pending_by_event(self, event_id: EventId) -> list[Position]:
        rows = self._conn.execute(
            _SELECT
            + " WHERE p.event_id = ? AND p.status = 'PENDING' AND p.is_deleted = 0"
            + " ORDER BY p.position_id",
            (event_id,),
        ).fetchall()
        return [_row_to_position(r) for r in rows]

    def list_by_creator(self, creator_id: UserId) -> list[Position]:
        rows = self._conn.execute(
            _SELECT + " WHERE p.creator_id = ? AND p.is_deleted = 0 ORDER BY p.created_at",
            (creator_id,),
        ).fetchall()
        return [_row_to_position(r) for r in rows]

    def save_settlement(self, position: Position) -> bool:
        if position.id is None:
            raise ValueError("Cannot settle a position without an id")
        with self._conn:
            cur = self._conn.execute(
                """
                UPDATE positions SET status = ?, settled_at = ?
                WHERE position_id = ? AND status = 'PENDING'
                """,
                (position.status.value, to_db_time(position.settled_at_utc), position.id),
            )
        return cur.rowcount == 1

    def delete(self, position_id: PositionId) -> None:
        """Soft-delete a position; it stops accepting votes and settlement."""
        with self._conn:
            self._conn.execute(
                "UPDATE positions SET is_deleted = 1 WHERE position_id = ?", (position_id,)
            )
            self._counters.mark_deleted(TargetType.POSITION, TargetId(int(position_id)))
