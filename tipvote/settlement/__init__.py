"""Settlement resolution engine: selection parsing, fact extraction, rules."""

from .resolver import resolve_settlement, settle_pick
from .result_extractor import ResultFacts, parse_score
from .selection_parser import (
    AsianHandicapPick,
    BothTeamsScorePick,
    MatchResultPick,
    OverUnderPick,
    Pick,
    parse_market,
    parse_selection,
)

__all__ = [
    "AsianHandicapPick",
    "BothTeamsScorePick",
    "MatchResultPick",
    "OverUnderPick",
    "Pick",
    "ResultFacts",
    "parse_market",
    "parse_score",
    "parse_selection",
    "resolve_settlement",
    "settle_pick",
]
