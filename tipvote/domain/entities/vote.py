from __future__ import annotations

from datetime import datetime, timezone
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

from ..value_objects.enums import TargetType, VoteDirection
from ..value_objects.ids import TargetId, VoterId


class VoteKey(NamedTuple):
    voter_id: VoterId
    target_type: TargetType
    target_id: TargetId


class VoteLedgerEntry(BaseModel):
    """One voter's current vote on one target.

    At most one live (not deleted) entry may exist per :class:`VoteKey`.
    """

    id: int | None = None
    voter_id: VoterId
    target_type: TargetType
    target_id: TargetId
    direction: VoteDirection
    is_deleted: bool = False
    created_at_utc: datetime
    updated_at_utc: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at_utc", "updated_at_utc", mode="before")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("timestamps must be timezone-aware")
        return v.astimezone(timezone.utc)

    @property
    def key(self) -> VoteKey:
        return VoteKey(self.voter_id, self.target_type, self.target_id)

    @classmethod
    def new(cls, key: VoteKey, direction: VoteDirection, at: datetime) -> "VoteLedgerEntry":
        return cls(
            voter_id=key.voter_id,
            target_type=key.target_type,
            target_id=key.target_id,
            direction=direction,
            created_at_utc=at,
            updated_at_utc=at,
        )

    def with_direction(self, direction: VoteDirection, at: datetime) -> "VoteLedgerEntry":
        return self.model_copy(update={"direction": direction, "updated_at_utc": at})

    def removed(self, at: datetime) -> "VoteLedgerEntry":
        return self.model_copy(update={"is_deleted": True, "updated_at_utc": at})
