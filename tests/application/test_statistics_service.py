from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, make_position
from tipvote.application.services.statistics_service import (
    StatisticsService,
    compute_statistics,
    determine_tier,
)
from tipvote.domain.value_objects.enums import ExpertTier, PositionStatus
from tipvote.domain.value_objects.ids import UserId
from tipvote.repositories.sqlite.positions_sqlite import PositionsRepoSqlite


def _settled(status: PositionStatus, days_ago: int, odds: str = "2.00"):
    at = NOW - timedelta(days=days_ago)
    return make_position(status=status, settled_at_utc=at, created_at_utc=at, odds=odds)


WON = PositionStatus.WON
LOST = PositionStatus.LOST
VOID = PositionStatus.VOID


def test_empty_track_record() -> None:
    stats = compute_statistics([], NOW)
    assert stats.total_positions == 0
    assert stats.win_rate == Decimal("0.00")
    assert stats.current_streak == 0


def test_totals_rates_and_odds() -> None:
    positions = [
        _settled(WON, 100, "1.50"),
        _settled(LOST, 40, "2.50"),
        _settled(WON, 20, "2.00"),
        _settled(VOID, 5, "3.00"),
        _settled(WON, 3, "1.80"),
        make_position(),
    ]
    stats = compute_statistics(positions, NOW)
    assert stats.total_positions == 6
    assert (stats.won_positions, stats.lost_positions) == (3, 1)
    assert (stats.void_positions, stats.pending_positions) == (1, 1)
    assert stats.win_rate == Decimal("75.00")
    assert stats.average_odds == Decimal("2.16")
    assert stats.last_7_days_win_rate == Decimal("100.00")
    assert stats.last_30_days_win_rate == Decimal("100.00")
    assert stats.last_90_days_win_rate == Decimal("66.67")


def test_streaks_skip_voids() -> None:
    positions = [
        _settled(WON, 10),
        _settled(WON, 9),
        _settled(WON, 8),
        _settled(LOST, 7),
        _settled(WON, 6),
        _settled(VOID, 5),
        _settled(WON, 4),
    ]
    stats = compute_statistics(list(reversed(positions)), NOW)
    assert stats.current_streak == 2
    assert stats.longest_win_streak == 3


def test_losing_streak_is_negative() -> None:
    positions = [_settled(WON, 3), _settled(LOST, 2), _settled(LOST, 1)]
    assert compute_statistics(positions, NOW).current_streak == -2


def test_windows_select_positions_by_creation_time() -> None:
    old_pick_settled_today = make_position(
        status=WON,
        created_at_utc=NOW - timedelta(days=10),
        settled_at_utc=NOW - timedelta(hours=1),
    )
    recent_loss = make_position(
        status=LOST,
        created_at_utc=NOW - timedelta(days=2),
        settled_at_utc=NOW - timedelta(days=1),
    )
    stats = compute_statistics([old_pick_settled_today, recent_loss], NOW)
    assert stats.last_7_days_win_rate == Decimal("0.00")
    assert stats.last_30_days_win_rate == Decimal("50.00")


@pytest.mark.parametrize(
    "rate, total, tier",
    [
        (Decimal("95"), 19, ExpertTier.BRONZE),
        (Decimal("85"), 25, ExpertTier.DIAMOND),
        (Decimal("70"), 20, ExpertTier.PLATINUM),
        (Decimal("65.5"), 25, ExpertTier.GOLD),
        (Decimal("50"), 40, ExpertTier.SILVER),
        (Decimal("49.99"), 40, ExpertTier.BRONZE),
    ],
)
def test_determine_tier(rate: Decimal, total: int, tier: ExpertTier) -> None:
    assert determine_tier(rate, total) is tier


def test_service_reads_from_repository(conn) -> None:
    repo = PositionsRepoSqlite(conn)
    for days in range(1, 21):
        p = _settled(WON if days % 4 else LOST, days)
        repo.insert(p.model_copy(update={"creator_id": UserId(5)}))
    stats, tier = StatisticsService(repo).recalculate(UserId(5), NOW)
    assert stats.total_positions == 20
    assert stats.won_positions == 15
    assert stats.last_90_days_win_rate == Decimal("75.00")
    assert tier is ExpertTier.PLATINUM
