from __future__ import annotations

import sqlite3
from typing import Optional

from tipvote.domain.errors import TargetNotFound
from tipvote.domain.value_objects.enums import TargetType
from tipvote.domain.value_objects.ids import TargetId
from tipvote.domain.value_objects.vote_counters import CounterDelta, VoteCounters

from ..counters import CounterStore
from .errors import translate_errors


class CounterStoreSqlite(CounterStore):
    """SQLite implementation of :class:`CounterStore`.

    Writes are not committed here; the enclosing unit of work owns the
    transaction. Counter arithmetic happens in SQL so concurrent writers never
    overwrite each other's increments.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS vote_targets (
                target_type INTEGER NOT NULL CHECK(target_type IN (1,2,3)),
                target_id INTEGER NOT NULL,
                upvotes INTEGER NOT NULL DEFAULT 0 CHECK(upvotes >= 0),
                downvotes INTEGER NOT NULL DEFAULT 0 CHECK(downvotes >= 0),
                voters INTEGER NOT NULL DEFAULT 0 CHECK(voters >= 0),
                prediction_percentage TEXT NOT NULL DEFAULT '0.00',
                is_deleted INTEGER NOT NULL DEFAULT 0 CHECK(is_deleted IN (0,1)),
                PRIMARY KEY (target_type, target_id)
            )
            """
        )
        self._conn.commit()

    def initialize(self, target_type: TargetType, target_id: TargetId) -> None:
        with translate_errors("vote_targets.pk"):
            self._conn.execute(
                "INSERT INTO vote_targets (target_type, target_id) VALUES (?, ?)",
                (int(target_type), int(target_id)),
            )

    def get(self, target_type: TargetType, target_id: TargetId) -> Optional[VoteCounters]:
        with translate_errors():
            row = self._conn.execute(
                """
                SELECT upvotes, downvotes, voters
                FROM vote_targets
                WHERE target_type = ? AND target_id = ? AND is_deleted = 0
                """,
                (int(target_type), int(target_id)),
            ).fetchone()
        if row is None:
            return None
        return VoteCounters(upvotes=row[0], downvotes=row[1], voters=row[2])

    def apply_delta(
        self, target_type: TargetType, target_id: TargetId, delta: CounterDelta
    ) -> VoteCounters:
        with translate_errors():
            cur = self._conn.execute(
                """
                UPDATE vote_targets
                SET upvotes = MAX(0, upvotes + ?),
                    downvotes = MAX(0, downvotes + ?),
                    voters = MAX(0, voters + ?)
                WHERE target_type = ? AND target_id = ? AND is_deleted = 0
                """,
                (delta.upvotes, delta.downvotes, delta.voters, int(target_type), int(target_id)),
            )
            if cur.rowcount == 0:
                raise TargetNotFound(target_type.name.capitalize(), target_id)
            counters = self.get(target_type, target_id)
            if counters is None:
                raise TargetNotFound(target_type.name.capitalize(), target_id)
            self._conn.execute(
                """
                UPDATE vote_targets SET prediction_percentage = ?
                WHERE target_type = ? AND target_id = ?
                """,
                (str(counters.prediction_percentage), int(target_type), int(target_id)),
            )
        return counters

    def mark_deleted(self, target_type: TargetType, target_id: TargetId) -> None:
        with translate_errors():
            self._conn.execute(
                "UPDATE vote_targets SET is_deleted = 1 WHERE target_type = ? AND target_id = ?",
                (int(target_type), int(target_id)),
            )
