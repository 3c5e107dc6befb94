"""Error taxonomy shared by the settlement engine and the vote aggregator."""

from __future__ import annotations

from typing import Optional


class TipvoteError(RuntimeError):
    """Base class for domain errors.

    ``status_code`` is the HTTP-equivalent status a transport layer should use
    when the error reaches a client.
    """

    status_code: Optional[int] = None

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class UnparseableSelection(TipvoteError):
    """A selection string does not fit the shape its market requires."""

    status_code = 422

    def __init__(self, market: object, selection: object, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot parse selection {selection!r} for market {market}{detail}")
        self.market = market
        self.selection = selection


class IndeterminateResult(TipvoteError):
    """The event result lacks a fact the market needs."""

    status_code = 422

    def __init__(self, fact: str) -> None:
        super().__init__(f"Event result does not determine {fact}")
        self.fact = fact


class InvalidVoteDirection(TipvoteError):
    status_code = 400

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid vote direction: {value!r}. Must be 1 (upvote) or 2 (downvote)")
        self.value = value


class InvalidVoteTarget(TipvoteError):
    status_code = 400

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid vote target type: {value!r}. Must be 1 (position), 2 (ticket) or 3 (expert)"
        )
        self.value = value


class TargetNotFound(TipvoteError):
    status_code = 404

    def __init__(self, target_type: object, target_id: object) -> None:
        super().__init__(f"{target_type} with ID {target_id} not found")
        self.target_type = target_type
        self.target_id = target_id


class PositionAlreadySettled(TipvoteError):
    status_code = 409

    def __init__(self, position_id: object, status: object) -> None:
        super().__init__(f"Position {position_id} is already settled as {status}")
        self.position_id = position_id


class ConcurrencyConflict(TipvoteError):
    """Concurrent writers kept colliding on the same ledger key."""

    status_code = 409


class StoreError(TipvoteError):
    """Base class for failures reported by persistence adapters."""

    status_code = 503


class ConstraintViolation(StoreError):
    """A write broke a uniqueness constraint named by ``constraint_key``."""

    status_code = 409

    def __init__(self, constraint_key: str, message: str = "") -> None:
        super().__init__(message or f"Constraint violated: {constraint_key}")
        self.constraint_key = constraint_key


class TransientStoreError(StoreError):
    """The store is temporarily unavailable (locked, busy); safe to retry."""
