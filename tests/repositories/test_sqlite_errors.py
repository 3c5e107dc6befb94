import sqlite3
from pathlib import Path

import pytest

from tipvote.domain.errors import ConstraintViolation, TransientStoreError
from tipvote.repositories.sqlite.connection import connect, from_db_time, to_db_time
from tipvote.repositories.sqlite.errors import classify, translate_errors
from tipvote.repositories.sqlite.votes_sqlite import SqliteVoteUnitOfWork


def test_unique_violation_is_classified_by_error_name(conn: sqlite3.Connection) -> None:
    conn.execute("CREATE TABLE t (k INTEGER PRIMARY KEY, v TEXT UNIQUE)")
    conn.execute("INSERT INTO t VALUES (1, 'a')")
    with pytest.raises(ConstraintViolation) as excinfo:
        with translate_errors("t.v"):
            conn.execute("INSERT INTO t VALUES (2, 'a')")
    assert excinfo.value.constraint_key == "t.v"
    assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)


def test_other_constraints_pass_through(conn: sqlite3.Connection) -> None:
    conn.execute("CREATE TABLE t (k INTEGER NOT NULL CHECK(k > 0))")
    with pytest.raises(sqlite3.IntegrityError):
        with translate_errors("t.k"):
            conn.execute("INSERT INTO t VALUES (-1)")


def test_busy_and_locked_are_transient() -> None:
    exc = sqlite3.OperationalError("database is locked")
    exc.sqlite_errorname = "SQLITE_BUSY"
    assert isinstance(classify(exc), TransientStoreError)
    exc.sqlite_errorname = "SQLITE_LOCKED_SHAREDCACHE"
    assert isinstance(classify(exc), TransientStoreError)
    exc.sqlite_errorname = "SQLITE_IOERR"
    assert classify(exc) is None


def test_message_text_is_not_used() -> None:
    exc = sqlite3.OperationalError("UNIQUE constraint failed: votes.voter_id")
    exc.sqlite_errorname = "SQLITE_ERROR"
    assert classify(exc) is None


def test_locked_database_raises_transient_error(tmp_path: Path) -> None:
    db = tmp_path / "locked.sqlite3"
    holder = connect(db)
    waiter = connect(db, timeout_ms=50)
    try:
        uow = SqliteVoteUnitOfWork(waiter)
        SqliteVoteUnitOfWork(holder)
        holder.execute("BEGIN IMMEDIATE")
        with pytest.raises(TransientStoreError):
            with uow.transaction():
                pass
        holder.rollback()
    finally:
        holder.close()
        waiter.close()


def test_connect_creates_parent_dir(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "dir" / "app.sqlite3"
    conn = connect(db)
    try:
        assert db.parent.is_dir()
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    finally:
        conn.close()


def test_db_time_round_trip() -> None:
    from datetime import datetime, timedelta, timezone

    local = datetime(2025, 3, 1, 19, 0, 0, 123, tzinfo=timezone(timedelta(hours=1)))
    text = to_db_time(local)
    assert text == "2025-03-01T18:00:00.000123+00:00"
    assert from_db_time(text) == local
    assert from_db_time("2025-03-01T18:00:00").tzinfo == timezone.utc
    assert to_db_time(None) is None
