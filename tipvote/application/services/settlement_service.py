from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from tipvote.domain.entities.event_result import EventResult
from tipvote.domain.entities.position import Position
from tipvote.domain.value_objects.enums import CreatorRole, SettlementOutcome
from tipvote.domain.value_objects.ids import EventId, PositionId, UserId
from tipvote.logging_config import SettlementTally
from tipvote.repositories.event_results import EventResultsRepo
from tipvote.repositories.positions import PositionsRepo
from tipvote.settlement.resolver import resolve_settlement

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SettlementReport:
    tally: SettlementTally = field(default_factory=SettlementTally)
    settled: list[tuple[PositionId, SettlementOutcome]] = field(default_factory=list)
    skipped: list[PositionId] = field(default_factory=list)
    failed: list[PositionId] = field(default_factory=list)
    experts_to_recalculate: set[UserId] = field(default_factory=set)


class SettlementService:
    """Settle pending positions once their event result is recorded.

    - Each pending, non-deleted position on the event is resolved with
      :func:`resolve_settlement` and stored exactly once.
    - A failure on one position is logged and does not stop the others.
    - ``dry_run`` resolves and reports without writing.
    """

    def __init__(
        self,
        positions: PositionsRepo,
        results: EventResultsRepo,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._positions = positions
        self._results = results
        self._clock = clock

    def settle_event(self, event_id: EventId, *, dry_run: bool = False) -> SettlementReport:
        result = self._results.get_by_event(event_id)
        report = SettlementReport()
        if result is None:
            logger.warning("No result recorded for event", extra={"event_id": event_id})
            return report
        self._settle_result(result, report, dry_run=dry_run)
        report.tally.log_summary()
        return report

    def settle_recent(
        self, lookback: timedelta, *, dry_run: bool = False
    ) -> SettlementReport:
        """Settle events whose results were settled within ``lookback``."""
        now = self._clock()
        results = self._results.list_settled_between(now - lookback, now)
        logger.info(
            "Starting settlement run",
            extra={"results": len(results), "lookback_seconds": lookback.total_seconds()},
        )
        report = SettlementReport()
        for result in results:
            self._settle_result(result, report, dry_run=dry_run)
        report.tally.log_summary()
        return report

    def _settle_result(
        self, result: EventResult, report: SettlementReport, *, dry_run: bool
    ) -> None:
        pending = self._positions.list_pending_by_event(result.event_id)
        settled_at = self._clock()
        for position in pending:
            try:
                outcome = self._settle_one(position, result, settled_at, dry_run=dry_run)
            except Exception:
                logger.exception(
                    "Failed to settle position", extra={"position_id": position.id}
                )
                report.failed.append(PositionId(int(position.id or 0)))
                continue
            if outcome is None:
                report.skipped.append(PositionId(int(position.id or 0)))
                continue
            report.tally.record(outcome)
            report.settled.append((PositionId(int(position.id or 0)), outcome))
            if position.creator_role == CreatorRole.EXPERT:
                report.experts_to_recalculate.add(position.creator_id)

    def _settle_one(
        self,
        position: Position,
        result: EventResult,
        settled_at: datetime,
        *,
        dry_run: bool,
    ) -> Optional[SettlementOutcome]:
        outcome = resolve_settlement(position.market, position.selection, result)
        if dry_run:
            return outcome
        if not self._positions.save_settlement(position.settle(outcome, settled_at)):
            logger.info(
                "Position already settled elsewhere", extra={"position_id": position.id}
            )
            return None
        logger.info(
            "Settled position",
            extra={
                "position_id": position.id,
                "outcome": outcome.value,
                "market": position.market.value,
                "selection": position.selection,
            },
        )
        return outcome
