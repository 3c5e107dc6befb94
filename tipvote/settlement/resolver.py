"""Decide Won/Lost/Void for a position from a completed event's result.

Resolution is fail-safe: a missing fact, a voided event or an unparseable
selection yields ``VOID`` instead of an error.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Optional, TypeVar

from tipvote.domain.entities.event_result import EventResult
from tipvote.domain.errors import IndeterminateResult, UnparseableSelection
from tipvote.domain.value_objects.enums import Market, SettlementOutcome, Side, TotalSide

from .result_extractor import ResultFacts
from .selection_parser import (
    AsianHandicapPick,
    BothTeamsScorePick,
    MatchResultPick,
    OverUnderPick,
    Pick,
    normalize_side,
    parse_market,
    parse_selection,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require(value: Optional[T], fact: str) -> T:
    if value is None:
        raise IndeterminateResult(fact)
    return value


def _won_if(condition: bool) -> SettlementOutcome:
    return SettlementOutcome.WON if condition else SettlementOutcome.LOST


def _settle_match_result(pick: MatchResultPick, facts: ResultFacts) -> SettlementOutcome:
    winner = _require(facts.winner(), "winner")
    return _won_if(normalize_side(pick.label) == normalize_side(winner))


def _settle_over_under(pick: OverUnderPick, facts: ResultFacts) -> SettlementOutcome:
    goals = Decimal(_require(facts.total_goals(), "total goals"))
    # Half lines cannot push: goal totals are integers.
    if pick.is_whole_line and goals == pick.line:
        return SettlementOutcome.VOID
    if pick.side == TotalSide.OVER:
        return _won_if(goals > pick.line)
    return _won_if(goals < pick.line)


def _settle_both_teams_score(pick: BothTeamsScorePick, facts: ResultFacts) -> SettlementOutcome:
    scored = _require(facts.both_teams_scored(), "both teams scored")
    return _won_if(pick.predicted == scored)


def _settle_asian_handicap(pick: AsianHandicapPick, facts: ResultFacts) -> SettlementOutcome:
    home, away = _require(facts.scores(), "scores")
    # The line covers when it exceeds the goal deficit of the picked side.
    deficit = Decimal(away - home) if pick.side == Side.HOME else Decimal(home - away)
    if pick.handicap == deficit:
        return SettlementOutcome.VOID
    return _won_if(pick.handicap > deficit)


_RULES: dict[type, Callable[..., SettlementOutcome]] = {
    MatchResultPick: _settle_match_result,
    OverUnderPick: _settle_over_under,
    BothTeamsScorePick: _settle_both_teams_score,
    AsianHandicapPick: _settle_asian_handicap,
}


def settle_pick(pick: Pick, facts: ResultFacts) -> SettlementOutcome:
    """Apply the market rule for an already parsed pick.

    Raises :class:`IndeterminateResult` when the facts the market needs are
    unknown.
    """
    if facts.is_void:
        return SettlementOutcome.VOID
    return _RULES[type(pick)](pick, facts)


def resolve_settlement(
    market: Market | str, selection: str | None, event_result: EventResult
) -> SettlementOutcome:
    """Resolve one position against a finalized event result."""
    mkt = parse_market(market)
    facts = ResultFacts(event_result)
    if facts.is_void:
        logger.info(
            "Event cancelled or abandoned, voiding",
            extra={"event_id": facts.event_id, "market": mkt.value},
        )
        return SettlementOutcome.VOID
    try:
        pick = parse_selection(mkt, selection)
        return settle_pick(pick, facts)
    except UnparseableSelection as exc:
        logger.warning(
            "Unparseable selection, voiding",
            extra={
                "event_id": facts.event_id,
                "market": mkt.value,
                "selection": selection,
                "reason": str(exc),
            },
        )
    except IndeterminateResult as exc:
        logger.warning(
            "Cannot determine %s, voiding",
            exc.fact,
            extra={"event_id": facts.event_id, "market": mkt.value, "selection": selection},
        )
    return SettlementOutcome.VOID
