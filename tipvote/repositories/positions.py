from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tipvote.domain.entities.position import Position
from tipvote.domain.value_objects.ids import EventId, PositionId, UserId


class PositionsRepo(ABC):
    """Repository interface for positions."""

    @abstractmethod
    def get_by_id(self, position_id: PositionId) -> Optional[Position]:
        """Return a position by its identifier."""

    @abstractmethod
    def insert(self, position: Position) -> PositionId:
        """Persist a new position together with its zeroed vote counters."""

    @abstractmethod
    def list_pending_by_event(self, event_id: EventId) -> list[Position]:
        """List non-deleted positions on ``event_id`` that are still pending."""

    @abstractmethod
    def list_by_creator(self, creator_id: UserId) -> list[Position]:
        """List non-deleted positions published by ``creator_id``."""

    @abstractmethod
    def save_settlement(self, position: Position) -> bool:
        """Store status and settlement time of a settled position.

        Returns ``False`` when the stored row was no longer pending, so a
        position is never settled twice.
        """
