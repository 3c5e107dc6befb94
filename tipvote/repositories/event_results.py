from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from tipvote.domain.entities.event_result import EventResult
from tipvote.domain.value_objects.ids import EventId


class EventResultsRepo(ABC):
    """Read access to recorded event results, plus recording for the feed."""

    @abstractmethod
    def get_by_event(self, event_id: EventId) -> Optional[EventResult]:
        """Return the result recorded for ``event_id``."""

    @abstractmethod
    def list_settled_between(self, start: datetime, end: datetime) -> list[EventResult]:
        """List results whose settlement time lies in ``[start, end]``."""

    @abstractmethod
    def record(self, result: EventResult) -> None:
        """Store a result; a recorded result is immutable."""
