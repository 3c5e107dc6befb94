from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tipvote.domain.value_objects.enums import TargetType
from tipvote.domain.value_objects.ids import TargetId
from tipvote.domain.value_objects.vote_counters import CounterDelta, VoteCounters


class CounterStore(ABC):
    """Vote counters per votable target (position, ticket, expert)."""

    @abstractmethod
    def initialize(self, target_type: TargetType, target_id: TargetId) -> None:
        """Create the all-zero counters of a new target.

        Called once when the target is created; voting never materializes
        counters lazily.
        """

    @abstractmethod
    def get(self, target_type: TargetType, target_id: TargetId) -> Optional[VoteCounters]:
        """Return counters of a live target, ``None`` if missing or deleted."""

    @abstractmethod
    def apply_delta(
        self, target_type: TargetType, target_id: TargetId, delta: CounterDelta
    ) -> VoteCounters:
        """Apply ``delta`` (floored at zero), store the derived percentage and
        return the updated counters."""

    @abstractmethod
    def mark_deleted(self, target_type: TargetType, target_id: TargetId) -> None:
        """Soft-delete a target so it no longer accepts votes."""
