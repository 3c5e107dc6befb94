"""Per (voter, target) vote transitions.

The state of a key is the direction of its live ledger entry, or ``None``
when the voter has no vote. Requesting the current direction again toggles
the vote off; requesting the other direction flips it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tipvote.domain.errors import InvalidVoteDirection, InvalidVoteTarget
from tipvote.domain.value_objects.enums import TargetType, VoteDirection
from tipvote.domain.value_objects.vote_counters import CounterDelta

_DIRECTION_ALIASES = {
    "1": VoteDirection.UPVOTE,
    "up": VoteDirection.UPVOTE,
    "upvote": VoteDirection.UPVOTE,
    "2": VoteDirection.DOWNVOTE,
    "down": VoteDirection.DOWNVOTE,
    "downvote": VoteDirection.DOWNVOTE,
}


class LedgerAction(str, Enum):
    CREATE = "CREATE"
    REMOVE = "REMOVE"
    UPDATE = "UPDATE"
    KEEP = "KEEP"


@dataclass(frozen=True)
class Transition:
    previous: Optional[VoteDirection]
    current: Optional[VoteDirection]
    action: LedgerAction
    delta: CounterDelta


def coerce_direction(value: object) -> VoteDirection:
    """Accept the enum, its wire value (1/2) or its name; reject the rest."""
    if isinstance(value, VoteDirection):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return VoteDirection(value)
        except ValueError:
            raise InvalidVoteDirection(value) from None
    if isinstance(value, str):
        direction = _DIRECTION_ALIASES.get(value.strip().lower())
        if direction is not None:
            return direction
    raise InvalidVoteDirection(value)


def coerce_target_type(value: object) -> TargetType:
    if isinstance(value, TargetType):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return TargetType(value)
        except ValueError:
            raise InvalidVoteTarget(value) from None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return coerce_target_type(int(text))
        try:
            return TargetType[text.upper()]
        except KeyError:
            raise InvalidVoteTarget(value) from None
    raise InvalidVoteTarget(value)


def keep(current: VoteDirection) -> Transition:
    """No ledger change; used when a racing request already wrote the same vote."""
    return Transition(
        previous=current, current=current, action=LedgerAction.KEEP, delta=CounterDelta()
    )


def decide_transition(
    current: Optional[VoteDirection], requested: VoteDirection
) -> Transition:
    if current is None:
        return Transition(
            previous=None,
            current=requested,
            action=LedgerAction.CREATE,
            delta=CounterDelta.for_direction(requested, 1) + CounterDelta(voters=1),
        )
    if current == requested:
        return Transition(
            previous=current,
            current=None,
            action=LedgerAction.REMOVE,
            delta=CounterDelta.for_direction(current, -1) + CounterDelta(voters=-1),
        )
    return Transition(
        previous=current,
        current=requested,
        action=LedgerAction.UPDATE,
        delta=CounterDelta.for_direction(current, -1) + CounterDelta.for_direction(requested, 1),
    )
