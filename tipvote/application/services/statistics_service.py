"""Expert track-record statistics derived from settled positions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Sequence

from tipvote.domain.entities.position import Position
from tipvote.domain.value_objects.enums import ExpertTier, PositionStatus
from tipvote.repositories.positions import PositionsRepo

logger = logging.getLogger(__name__)

MIN_POSITIONS_FOR_TIER = 20
_CENT = Decimal("0.01")

# (minimum 90-day win rate, tier), best tier first
TIER_THRESHOLDS: tuple[tuple[Decimal, ExpertTier], ...] = (
    (Decimal("80"), ExpertTier.DIAMOND),
    (Decimal("70"), ExpertTier.PLATINUM),
    (Decimal("60"), ExpertTier.GOLD),
    (Decimal("50"), ExpertTier.SILVER),
)


@dataclass(frozen=True)
class ExpertStatistics:
    total_positions: int = 0
    won_positions: int = 0
    lost_positions: int = 0
    void_positions: int = 0
    pending_positions: int = 0
    win_rate: Decimal = Decimal("0.00")
    average_odds: Decimal = Decimal("0.00")
    current_streak: int = 0
    longest_win_streak: int = 0
    last_7_days_win_rate: Decimal = Decimal("0.00")
    last_30_days_win_rate: Decimal = Decimal("0.00")
    last_90_days_win_rate: Decimal = Decimal("0.00")


def _win_rate(won: int, lost: int) -> Decimal:
    decided = won + lost
    if decided == 0:
        return Decimal("0.00")
    return (Decimal(won) / Decimal(decided) * 100).quantize(_CENT, rounding=ROUND_HALF_EVEN)


def _count(positions: Iterable[Position], status: PositionStatus) -> int:
    return sum(1 for p in positions if p.status == status)


def _streaks(positions: Sequence[Position]) -> tuple[int, int]:
    """Return (current streak, longest win streak).

    The current streak is positive for consecutive wins and negative for
    consecutive losses; voids do not break or extend it.
    """
    current = 0
    longest = 0
    ordered = sorted(
        (p for p in positions if p.status in (PositionStatus.WON, PositionStatus.LOST)),
        key=lambda p: p.created_at_utc,
    )
    for p in ordered:
        if p.status == PositionStatus.WON:
            current = current + 1 if current >= 0 else 1
            longest = max(longest, current)
        else:
            current = current - 1 if current <= 0 else -1
    return current, longest


def _window_win_rate(positions: Sequence[Position], since: datetime) -> Decimal:
    """Win rate of the settled positions created at or after ``since``."""
    recent = [p for p in positions if p.is_settled and p.created_at_utc >= since]
    return _win_rate(_count(recent, PositionStatus.WON), _count(recent, PositionStatus.LOST))


def compute_statistics(positions: Sequence[Position], now: datetime) -> ExpertStatistics:
    won = _count(positions, PositionStatus.WON)
    lost = _count(positions, PositionStatus.LOST)
    settled = [p for p in positions if p.is_settled]
    average_odds = (
        (sum((p.odds for p in settled), Decimal("0")) / len(settled)).quantize(
            _CENT, rounding=ROUND_HALF_EVEN
        )
        if settled
        else Decimal("0.00")
    )
    current, longest = _streaks(positions)
    return ExpertStatistics(
        total_positions=len(positions),
        won_positions=won,
        lost_positions=lost,
        void_positions=_count(positions, PositionStatus.VOID),
        pending_positions=_count(positions, PositionStatus.PENDING),
        win_rate=_win_rate(won, lost),
        average_odds=average_odds,
        current_streak=current,
        longest_win_streak=longest,
        last_7_days_win_rate=_window_win_rate(positions, now - timedelta(days=7)),
        last_30_days_win_rate=_window_win_rate(positions, now - timedelta(days=30)),
        last_90_days_win_rate=_window_win_rate(positions, now - timedelta(days=90)),
    )


def determine_tier(win_rate_90d: Decimal, total_positions: int) -> ExpertTier:
    if total_positions < MIN_POSITIONS_FOR_TIER:
        return ExpertTier.BRONZE
    for threshold, tier in TIER_THRESHOLDS:
        if win_rate_90d >= threshold:
            return tier
    return ExpertTier.BRONZE


class StatisticsService:
    """Recalculate an expert's statistics from the positions repository."""

    def __init__(self, positions: PositionsRepo) -> None:
        self._positions = positions

    def recalculate(self, creator_id: int, now: datetime) -> tuple[ExpertStatistics, ExpertTier]:
        stats = compute_statistics(self._positions.list_by_creator(creator_id), now)
        tier = determine_tier(stats.last_90_days_win_rate, stats.total_positions)
        logger.info(
            "Recalculated statistics for expert",
            extra={"creator_id": creator_id, "tier": tier.value, "win_rate": str(stats.win_rate)},
        )
        return stats, tier

