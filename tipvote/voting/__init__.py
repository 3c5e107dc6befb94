"""Vote aggregation: transitions, concurrency guard and the aggregator."""

from .aggregator import VoteAggregator, VoteResult
from .guard import ConcurrencyGuard
from .state_machine import (
    LedgerAction,
    Transition,
    coerce_direction,
    coerce_target_type,
    decide_transition,
    keep,
)

__all__ = [
    "ConcurrencyGuard",
    "LedgerAction",
    "Transition",
    "VoteAggregator",
    "VoteResult",
    "coerce_direction",
    "coerce_target_type",
    "decide_transition",
    "keep",
]
