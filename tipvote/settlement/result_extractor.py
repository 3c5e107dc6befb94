"""Read canonical facts out of heterogeneous event results.

The structured payload is preferred; the final score string is the fallback.
None of the accessors raise: malformed data degrades to the fallback and a
total failure yields ``None`` (unknown).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional

from tipvote.domain.entities.event_result import EventResult

logger = logging.getLogger(__name__)

_SCORE_RE = re.compile(r"^\s*(\d+)\s*[-:]\s*(\d+)\s*$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_int(value: Any) -> Optional[int]:
    if not _is_number(value):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def parse_score(score: str | None) -> Optional[tuple[int, int]]:
    """Parse ``"2-1"`` or ``"2:1"`` into ``(2, 1)``; anything else is ``None``."""
    if not score:
        return None
    match = _SCORE_RE.match(score)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


class ResultFacts:
    """Lazily derived facts about one :class:`EventResult`."""

    def __init__(self, result: EventResult) -> None:
        self._result = result
        self._payload = self._load_payload(result)

    @staticmethod
    def _load_payload(result: EventResult) -> Mapping[str, Any]:
        raw = result.market_results
        if raw is None:
            return {}
        if isinstance(raw, Mapping):
            return raw
        text = raw.strip()
        if not text:
            return {}
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError):
            logger.warning(
                "Unreadable market results payload",
                extra={"event_id": result.event_id},
            )
            return {}
        if not isinstance(data, Mapping):
            logger.warning(
                "Market results payload is not an object",
                extra={"event_id": result.event_id},
            )
            return {}
        return data

    @property
    def event_id(self) -> int:
        return int(self._result.event_id)

    @property
    def is_void(self) -> bool:
        return self._payload.get("cancelled") is True or self._payload.get("abandoned") is True

    def scores(self) -> Optional[tuple[int, int]]:
        home = _as_int(self._payload.get("homeScore"))
        away = _as_int(self._payload.get("awayScore"))
        if home is not None and away is not None:
            return home, away
        return parse_score(self._result.final_score)

    def total_goals(self) -> Optional[int]:
        explicit = _as_int(self._payload.get("totalGoals"))
        if explicit is not None:
            return explicit
        scores = self.scores()
        if scores is None:
            return None
        return scores[0] + scores[1]

    def both_teams_scored(self) -> Optional[bool]:
        explicit = self._payload.get("bothTeamsScore")
        if isinstance(explicit, bool):
            return explicit
        scores = self.scores()
        if scores is None:
            return None
        return scores[0] > 0 and scores[1] > 0

    def winner(self) -> Optional[str]:
        for candidate in (self._result.winner, self._payload.get("matchResult")):
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None
