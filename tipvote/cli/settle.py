from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from typing import Sequence

from tipvote.application.services.settlement_service import SettlementReport, SettlementService
from tipvote.application.services.statistics_service import ExpertStatistics, StatisticsService
from tipvote.config.settings import settings
from tipvote.domain.value_objects.enums import ExpertTier
from tipvote.domain.value_objects.ids import EventId, UserId
from tipvote.logging_config import get_logger
from tipvote.repositories.sqlite.connection import connect
from tipvote.repositories.sqlite.event_results_sqlite import EventResultsRepoSqlite
from tipvote.repositories.sqlite.positions_sqlite import PositionsRepoSqlite


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Settle pending positions against event results")
    p.add_argument("--db", default=settings.db_path, help="SQLite database path")
    p.add_argument("--event", type=int, help="Settle a single event instead of a recent window")
    p.add_argument(
        "--lookback-minutes",
        type=int,
        default=settings.settlement_lookback_minutes,
        help="Settle results recorded within this many minutes",
    )
    p.add_argument("--dry-run", action="store_true", help="Resolve without writing")
    return p


def _print_report(report: SettlementReport, dry_run: bool) -> None:
    prefix = "[DRY RUN] " if dry_run else ""
    for position_id, outcome in report.settled:
        print(f"{prefix}position={position_id} outcome={outcome.value}")
    counts = report.tally.as_dict()
    print(
        f"{prefix}Settled {report.tally.total}: "
        f"won={counts['won']} lost={counts['lost']} void={counts['void']} "
        f"skipped={len(report.skipped)} failed={len(report.failed)}"
    )
    if dry_run and report.experts_to_recalculate:
        experts = ", ".join(str(e) for e in sorted(report.experts_to_recalculate))
        print(f"{prefix}Experts to recalculate: {experts}")


def _print_experts(experts: dict[UserId, tuple[ExpertStatistics, ExpertTier]]) -> None:
    for expert_id, (stats, tier) in sorted(experts.items()):
        print(
            f"expert={expert_id} tier={tier.value} positions={stats.total_positions} "
            f"win_rate={stats.win_rate} win_rate_90d={stats.last_90_days_win_rate} "
            f"streak={stats.current_streak}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.lookback_minutes < 1:
        parser.error("--lookback-minutes must be at least 1")

    get_logger()
    conn = connect(args.db)
    experts: dict[UserId, tuple[ExpertStatistics, ExpertTier]] = {}
    try:
        positions = PositionsRepoSqlite(conn)
        svc = SettlementService(positions, EventResultsRepoSqlite(conn))
        if args.event is not None:
            report = svc.settle_event(EventId(args.event), dry_run=args.dry_run)
        else:
            report = svc.settle_recent(
                timedelta(minutes=args.lookback_minutes), dry_run=args.dry_run
            )
        if not args.dry_run:
            stats_svc = StatisticsService(positions)
            now = datetime.now(timezone.utc)
            for expert_id in report.experts_to_recalculate:
                experts[expert_id] = stats_svc.recalculate(expert_id, now)
    finally:
        conn.close()

    if not report.settled and not report.failed:
        print("Nothing to settle.")
        return 0
    _print_report(report, args.dry_run)
    _print_experts(experts)
    return 1 if report.failed else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
