from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from ..value_objects.ids import EventId


class EventResult(BaseModel):
    """Outcome of a completed sporting event as recorded by the results feed.

    ``market_results`` is the semi-structured payload; it arrives either as a
    mapping or as the raw JSON text stored by the feed and is read leniently by
    :class:`tipvote.settlement.result_extractor.ResultFacts`.
    """

    event_id: EventId
    winner: str | None = None
    final_score: str | None = None
    half_time_score: str | None = None
    market_results: Mapping[str, Any] | str | None = None
    completed_at_utc: datetime | None = None
    settled_at_utc: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("completed_at_utc", "settled_at_utc", mode="before")
    @classmethod
    def _ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        if v.tzinfo is None:
            raise ValueError("timestamps must be timezone-aware")
        return v.astimezone(timezone.utc)
