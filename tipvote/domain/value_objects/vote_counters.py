from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import VoteDirection

_HUNDRED = Decimal("100")
_CENT = Decimal("0.01")


class CounterDelta(BaseModel):
    """Signed change applied to a target's vote counters by one vote."""

    upvotes: int = 0
    downvotes: int = 0
    voters: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_direction(cls, direction: VoteDirection, step: int) -> "CounterDelta":
        if direction is VoteDirection.UPVOTE:
            return cls(upvotes=step)
        return cls(downvotes=step)

    def __add__(self, other: "CounterDelta") -> "CounterDelta":
        return CounterDelta(
            upvotes=self.upvotes + other.upvotes,
            downvotes=self.downvotes + other.downvotes,
            voters=self.voters + other.voters,
        )

    @property
    def is_zero(self) -> bool:
        return self.upvotes == 0 and self.downvotes == 0 and self.voters == 0


class VoteCounters(BaseModel):
    """Vote counters of a single target.

    Every live ledger entry is exactly one of up or down, so the number of
    distinct voters always equals ``upvotes + downvotes``.
    """

    upvotes: int = Field(0, ge=0, description="Number of live upvotes")
    downvotes: int = Field(0, ge=0, description="Number of live downvotes")
    voters: int = Field(0, ge=0, description="Number of distinct voters")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _voters_match_votes(self) -> "VoteCounters":
        if self.upvotes + self.downvotes != self.voters:
            raise ValueError("voters must equal upvotes + downvotes")
        return self

    @property
    def prediction_percentage(self) -> Decimal:
        """Share of upvotes among directional votes, 0-100 with two decimals."""
        total = max(1, self.upvotes + self.downvotes)
        pct = Decimal(self.upvotes) / Decimal(total) * _HUNDRED
        pct = min(_HUNDRED, max(Decimal("0"), pct))
        return pct.quantize(_CENT, rounding=ROUND_HALF_EVEN)

    def apply(self, delta: CounterDelta) -> "VoteCounters":
        """Return new counters with ``delta`` applied, each floored at zero."""
        return VoteCounters(
            upvotes=max(0, self.upvotes + delta.upvotes),
            downvotes=max(0, self.downvotes + delta.downvotes),
            voters=max(0, self.voters + delta.voters),
        )

    def as_dict(self) -> dict[str, object]:
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "voters": self.voters,
            "prediction_percentage": self.prediction_percentage,
        }
