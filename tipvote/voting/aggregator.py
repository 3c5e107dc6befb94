from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from tipvote.domain.entities.vote import VoteKey
from tipvote.domain.errors import TargetNotFound
from tipvote.domain.value_objects.enums import TargetType, VoteDirection
from tipvote.domain.value_objects.ids import TargetId, VoterId
from tipvote.domain.value_objects.vote_counters import VoteCounters
from tipvote.repositories.votes import VoteUnitOfWork

from .guard import ConcurrencyGuard
from .state_machine import coerce_direction, coerce_target_type

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VoteResult:
    target_type: TargetType
    target_id: TargetId
    direction: Optional[VoteDirection]
    counters: VoteCounters

    @property
    def vote_type(self) -> Optional[str]:
        """``"upvote"``/``"downvote"``, or ``None`` when the vote was removed."""
        return self.direction.name.lower() if self.direction is not None else None

    @property
    def prediction_percentage(self) -> Decimal:
        return self.counters.prediction_percentage


class VoteAggregator:
    """Apply votes to targets and keep their counters in step with the ledger.

    The ledger mutation and the counter update run inside one
    :meth:`VoteUnitOfWork.transaction`, so a reader never sees one without
    the other. Every error propagates; a vote request is never dropped.
    """

    def __init__(
        self,
        store: VoteUnitOfWork,
        guard: Optional[ConcurrencyGuard] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._guard = guard or ConcurrencyGuard()
        self._clock = clock

    def apply_vote(
        self,
        voter_id: VoterId | int,
        target_type: TargetType | int | str,
        target_id: TargetId | int,
        direction: VoteDirection | int | str,
    ) -> VoteResult:
        requested = coerce_direction(direction)
        ttype = coerce_target_type(target_type)
        key = VoteKey(VoterId(int(voter_id)), ttype, TargetId(int(target_id)))

        started = self._clock()
        with self._store.transaction():
            existing = self._guard.read(lambda: self._store.counters.get(ttype, key.target_id))
            if existing is None:
                raise TargetNotFound(ttype.name.capitalize(), key.target_id)
            transition = self._guard.write(
                self._store.ledger, key, requested, self._clock(), since=started
            )
            counters = self._store.counters.apply_delta(ttype, key.target_id, transition.delta)

        logger.info(
            "Vote applied",
            extra={
                "voter_id": key.voter_id,
                "target_type": ttype.name,
                "target_id": key.target_id,
                "action": transition.action.value,
                "upvotes": counters.upvotes,
                "downvotes": counters.downvotes,
                "voters": counters.voters,
            },
        )
        return VoteResult(
            target_type=ttype,
            target_id=key.target_id,
            direction=transition.current,
            counters=counters,
        )
