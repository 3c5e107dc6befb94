"""Parse free-text market selections into typed picks.

Each market has exactly one pick type; anything that does not fit its shape is
rejected here with :class:`UnparseableSelection` so the resolver never has to
inspect raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from tipvote.domain.errors import UnparseableSelection
from tipvote.domain.value_objects.enums import Market, Side, TotalSide

_SIDE_SYNONYMS: dict[str, Side] = {
    "1": Side.HOME,
    "home": Side.HOME,
    "home win": Side.HOME,
    "2": Side.AWAY,
    "away": Side.AWAY,
    "away win": Side.AWAY,
    "x": Side.DRAW,
    "draw": Side.DRAW,
}
_YES = {"yes", "true", "1"}
_NO = {"no", "false", "0"}

_MARKET_ALIASES: dict[str, Market] = {
    "match result": Market.MATCH_RESULT,
    "match_result": Market.MATCH_RESULT,
    "1x2": Market.MATCH_RESULT,
    "full time result": Market.MATCH_RESULT,
    "over/under": Market.OVER_UNDER,
    "over_under": Market.OVER_UNDER,
    "total goals": Market.OVER_UNDER,
    "o/u": Market.OVER_UNDER,
    "both teams score": Market.BOTH_TEAMS_SCORE,
    "both teams to score": Market.BOTH_TEAMS_SCORE,
    "both_teams_score": Market.BOTH_TEAMS_SCORE,
    "btts": Market.BOTH_TEAMS_SCORE,
    "asian handicap": Market.ASIAN_HANDICAP,
    "asian_handicap": Market.ASIAN_HANDICAP,
    "handicap": Market.ASIAN_HANDICAP,
}


@dataclass(frozen=True)
class MatchResultPick:
    # ``side`` is None when the selection is not a known synonym; ``label``
    # keeps the lower-cased text so it can still be compared to a winner.
    side: Side | None
    label: str


@dataclass(frozen=True)
class OverUnderPick:
    side: TotalSide
    line: Decimal

    @property
    def is_whole_line(self) -> bool:
        return self.line == self.line.to_integral_value()


@dataclass(frozen=True)
class BothTeamsScorePick:
    predicted: bool


@dataclass(frozen=True)
class AsianHandicapPick:
    side: Side
    handicap: Decimal


Pick = Union[MatchResultPick, OverUnderPick, BothTeamsScorePick, AsianHandicapPick]


def parse_market(name: Market | str) -> Market:
    """Map a market enum or a client-facing market name onto :class:`Market`.

    >>> parse_market("BTTS")
    <Market.BOTH_TEAMS_SCORE: 'BOTH_TEAMS_SCORE'>
    """
    if isinstance(name, Market):
        return name
    key = str(name).strip().lower()
    if key in _MARKET_ALIASES:
        return _MARKET_ALIASES[key]
    try:
        return Market(key.upper())
    except ValueError:
        return Market.OTHER


def normalize_side(text: str | None) -> str:
    """Lower-case ``text`` and fold match-result synonyms onto side names."""
    if text is None:
        return ""
    label = text.strip().lower()
    side = _SIDE_SYNONYMS.get(label)
    return side.value.lower() if side is not None else label


def _tokens(market: Market, selection: str) -> tuple[str, str]:
    parts = selection.split()
    if len(parts) != 2:
        raise UnparseableSelection(market, selection, "expected two tokens")
    return parts[0], parts[1]


def _decimal(market: Market, selection: str, token: str) -> Decimal:
    try:
        value = Decimal(token)
    except InvalidOperation as exc:
        raise UnparseableSelection(market, selection, f"{token!r} is not a number") from exc
    if not value.is_finite():
        raise UnparseableSelection(market, selection, f"{token!r} is not a finite number")
    return value


def parse_selection(market: Market | str, selection: str | None) -> Pick:
    """Parse ``selection`` for ``market`` or raise :class:`UnparseableSelection`."""
    mkt = parse_market(market)
    text = (selection or "").strip()
    if not text:
        raise UnparseableSelection(mkt, selection, "empty selection")

    if mkt == Market.MATCH_RESULT:
        label = text.lower()
        return MatchResultPick(side=_SIDE_SYNONYMS.get(label), label=label)

    if mkt == Market.OVER_UNDER:
        side_token, line_token = _tokens(mkt, text)
        try:
            side = TotalSide(side_token.upper())
        except ValueError as exc:
            raise UnparseableSelection(mkt, selection, "side must be Over or Under") from exc
        return OverUnderPick(side=side, line=_decimal(mkt, selection or "", line_token))

    if mkt == Market.BOTH_TEAMS_SCORE:
        label = text.lower()
        if label in _YES:
            return BothTeamsScorePick(predicted=True)
        if label in _NO:
            return BothTeamsScorePick(predicted=False)
        raise UnparseableSelection(mkt, selection, "expected yes or no")

    if mkt == Market.ASIAN_HANDICAP:
        team_token, handicap_token = _tokens(mkt, text)
        team = team_token.lower()
        if team not in {"home", "away"}:
            raise UnparseableSelection(mkt, selection, "team must be Home or Away")
        return AsianHandicapPick(
            side=Side.HOME if team == "home" else Side.AWAY,
            handicap=_decimal(mkt, selection or "", handicap_token),
        )

    raise UnparseableSelection(mkt, selection, "market is not settled automatically")
