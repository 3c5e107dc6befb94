from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from conftest import make_position, make_result
from tipvote.cli import settle
from tipvote.domain.value_objects.enums import CreatorRole, PositionStatus
from tipvote.domain.value_objects.ids import EventId, UserId
from tipvote.repositories.sqlite.connection import connect
from tipvote.repositories.sqlite.event_results_sqlite import EventResultsRepoSqlite
from tipvote.repositories.sqlite.positions_sqlite import PositionsRepoSqlite


def _seed(db: Path, settled_at: datetime, **position: object) -> int:
    conn = connect(db)
    try:
        EventResultsRepoSqlite(conn).record(
            make_result(winner="Home", settled_at_utc=settled_at)
        )
        return int(PositionsRepoSqlite(conn).insert(make_position(**position)))
    finally:
        conn.close()


def _status(db: Path, pid: int) -> PositionStatus:
    conn = connect(db)
    try:
        return PositionsRepoSqlite(conn).get_by_id(pid).status
    finally:
        conn.close()


def test_settle_single_event(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "app.sqlite3"
    pid = _seed(db, datetime(2025, 1, 1, tzinfo=timezone.utc))
    code = settle.main(["--db", str(db), "--event", "100"])
    out = capsys.readouterr().out
    assert code == 0
    assert f"position={pid} outcome=WON" in out
    assert "won=1 lost=0 void=0" in out
    assert _status(db, pid) is PositionStatus.WON


def test_settle_recent_dry_run(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "app.sqlite3"
    pid = _seed(db, datetime.now(timezone.utc) - timedelta(minutes=2))
    code = settle.main(["--db", str(db), "--lookback-minutes", "5", "--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("[DRY RUN] ")
    assert _status(db, pid) is PositionStatus.PENDING


def test_settling_expert_positions_recalculates_their_statistics(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db = tmp_path / "app.sqlite3"
    _seed(
        db,
        datetime(2025, 1, 1, tzinfo=timezone.utc),
        creator_id=UserId(9),
        creator_role=CreatorRole.EXPERT,
    )
    assert settle.main(["--db", str(db), "--event", "100"]) == 0
    out = capsys.readouterr().out
    assert "expert=9 tier=BRONZE positions=1 win_rate=100.00" in out
    assert "streak=1" in out
    assert "Experts to recalculate" not in out


def test_dry_run_only_lists_experts(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "app.sqlite3"
    _seed(
        db,
        datetime(2025, 1, 1, tzinfo=timezone.utc),
        creator_id=UserId(9),
        creator_role=CreatorRole.EXPERT,
    )
    assert settle.main(["--db", str(db), "--event", "100", "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "[DRY RUN] Experts to recalculate: 9" in out
    assert "expert=9" not in out


def test_nothing_to_settle(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = tmp_path / "empty.sqlite3"
    assert settle.main(["--db", str(db), "--event", str(EventId(5))]) == 0
    assert "Nothing to settle." in capsys.readouterr().out


def test_lookback_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        settle.main(["--db", str(tmp_path / "x.sqlite3"), "--lookback-minutes", "0"])
