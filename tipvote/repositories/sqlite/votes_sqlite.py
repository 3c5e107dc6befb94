from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from tipvote.domain.entities.vote import VoteKey, VoteLedgerEntry
from tipvote.domain.value_objects.enums import TargetType, VoteDirection
from tipvote.domain.value_objects.ids import TargetId, VoterId

from ..counters import CounterStore
from ..votes import LedgerStore, VoteUnitOfWork
from .connection import from_db_time, to_db_time
from .counters_sqlite import CounterStoreSqlite
from .errors import translate_errors

LIVE_KEY_INDEX = "ux_votes_live_key"

_COLUMNS = (
    "vote_id, voter_id, target_type, target_id, direction, is_deleted, created_at, updated_at"
)


def _row_to_entry(row: tuple) -> VoteLedgerEntry:
    return VoteLedgerEntry(
        id=row[0],
        voter_id=VoterId(row[1]),
        target_type=TargetType(row[2]),
        target_id=TargetId(row[3]),
        direction=VoteDirection(row[4]),
        is_deleted=bool(row[5]),
        created_at_utc=from_db_time(row[6]),
        updated_at_utc=from_db_time(row[7]),
    )


class LedgerStoreSqlite(LedgerStore):
    """SQLite implementation of :class:`LedgerStore`.

    A partial unique index over live rows enforces at most one live entry per
    key; soft-deleted rows stay behind as history.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS votes (
                vote_id INTEGER PRIMARY KEY,
                voter_id INTEGER NOT NULL,
                target_type INTEGER NOT NULL CHECK(target_type IN (1,2,3)),
                target_id INTEGER NOT NULL,
                direction INTEGER NOT NULL CHECK(direction IN (1,2)),
                is_deleted INTEGER NOT NULL DEFAULT 0 CHECK(is_deleted IN (0,1)),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            f"""
            CREATE UNIQUE INDEX IF NOT EXISTS {LIVE_KEY_INDEX}
            ON votes(voter_id, target_type, target_id) WHERE is_deleted = 0
            """
        )
        self._conn.commit()

    def get(self, key: VoteKey) -> Optional[VoteLedgerEntry]:
        with translate_errors():
            row = self._conn.execute(
                f"""
                SELECT {_COLUMNS} FROM votes
                WHERE voter_id = ? AND target_type = ? AND target_id = ? AND is_deleted = 0
                """,
                (int(key.voter_id), int(key.target_type), int(key.target_id)),
            ).fetchone()
        return _row_to_entry(row) if row else None

    def create(self, entry: VoteLedgerEntry) -> VoteLedgerEntry:
        with translate_errors(LIVE_KEY_INDEX):
            cur = self._conn.execute(
                """
                INSERT INTO votes (voter_id, target_type, target_id, direction, is_deleted,
                                   created_at, updated_at)
                VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    int(entry.voter_id),
                    int(entry.target_type),
                    int(entry.target_id),
                    int(entry.direction),
                    to_db_time(entry.created_at_utc),
                    to_db_time(entry.updated_at_utc),
                ),
            )
        rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite insert failed: no lastrowid (table: votes)")
        return entry.model_copy(update={"id": int(rowid)})

    def update(self, entry: VoteLedgerEntry) -> None:
        if entry.id is None:
            raise ValueError("Cannot update a ledger entry without an id")
        with translate_errors(LIVE_KEY_INDEX):
            self._conn.execute(
                "UPDATE votes SET direction = ?, updated_at = ? WHERE vote_id = ?",
                (int(entry.direction), to_db_time(entry.updated_at_utc), entry.id),
            )

    def remove(self, entry: VoteLedgerEntry) -> None:
        if entry.id is None:
            raise ValueError("Cannot remove a ledger entry without an id")
        with translate_errors():
            self._conn.execute(
                "UPDATE votes SET is_deleted = 1, updated_at = ? WHERE vote_id = ?",
                (to_db_time(entry.updated_at_utc), entry.id),
            )

    def list_for_target(
        self, target_type: TargetType, target_id: TargetId
    ) -> list[VoteLedgerEntry]:
        with translate_errors():
            rows = self._conn.execute(
                f"""
                SELECT {_COLUMNS} FROM votes
                WHERE target_type = ? AND target_id = ? AND is_deleted = 0
                ORDER BY vote_id
                """,
                (int(target_type), int(target_id)),
            ).fetchall()
        return [_row_to_entry(r) for r in rows]


class SqliteVoteUnitOfWork(VoteUnitOfWork):
    """Ledger and counters over one connection; the connection's transaction
    is the atomic boundary."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._ledger = LedgerStoreSqlite(conn)
        self._counters = CounterStoreSqlite(conn)

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def counters(self) -> CounterStore:
        return self._counters

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._conn.in_transaction:
            # Join the caller's transaction; it commits or rolls back.
            yield
            return
        # IMMEDIATE takes the write lock up front, so concurrent voters queue
        # on the busy timeout instead of deadlocking on lock upgrade.
        with translate_errors():
            self._conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            self._conn.rollback()
            raise
        with translate_errors():
            self._conn.commit()
