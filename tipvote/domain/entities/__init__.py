from .event_result import EventResult
from .position import Position
from .vote import VoteKey, VoteLedgerEntry

__all__ = [
    "EventResult",
    "Position",
    "VoteKey",
    "VoteLedgerEntry",
]
