from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_EVEN, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..errors import PositionAlreadySettled
from ..value_objects.enums import CreatorRole, Market, PositionStatus, SettlementOutcome
from ..value_objects.ids import EventId, PositionId, UserId
from ..value_objects.vote_counters import VoteCounters


class Position(BaseModel):
    """A published prediction on a sporting event."""

    id: PositionId | None = None
    event_id: EventId
    creator_id: UserId
    creator_role: CreatorRole = CreatorRole.USER
    market: Market
    selection: str = Field(..., min_length=1, description="Free-text market selection")
    odds: Decimal = Field(..., description="Decimal odds, two fractional digits")
    counters: VoteCounters = Field(default_factory=VoteCounters)
    status: PositionStatus = PositionStatus.PENDING
    created_at_utc: datetime
    settled_at_utc: datetime | None = None
    is_deleted: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at_utc", "settled_at_utc", mode="before")
    @classmethod
    def _ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        if v.tzinfo is None:
            raise ValueError("timestamps must be timezone-aware")
        return v.astimezone(timezone.utc)

    @field_validator("odds", mode="before")
    @classmethod
    def _quantize_odds(cls, v: Decimal | int | float | str) -> Decimal:
        if not isinstance(v, Decimal):
            v = Decimal(str(v))
        v = v.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
        if v < Decimal("1.01"):
            raise ValueError("Odds must be at least 1.01")
        return v

    @model_validator(mode="after")
    def _settled_at_matches_status(self) -> "Position":
        if self.status == PositionStatus.PENDING and self.settled_at_utc is not None:
            raise ValueError("Pending position cannot carry a settlement time")
        if self.status != PositionStatus.PENDING and self.settled_at_utc is None:
            raise ValueError("Settled position must carry a settlement time")
        return self

    @property
    def is_settled(self) -> bool:
        return self.status != PositionStatus.PENDING

    @property
    def prediction_percentage(self) -> Decimal:
        return self.counters.prediction_percentage

    def settle(self, outcome: SettlementOutcome, at: datetime) -> "Position":
        """Return the settled copy of this position; settlement happens once."""
        if self.is_settled:
            raise PositionAlreadySettled(self.id, self.status.value)
        return Position.model_validate(
            {**self.model_dump(), "status": outcome.as_status(), "settled_at_utc": at}
        )
