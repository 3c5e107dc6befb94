from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Callable, Optional, TypeVar

from tipvote.domain.entities.vote import VoteKey, VoteLedgerEntry
from tipvote.domain.errors import ConcurrencyConflict, ConstraintViolation, TransientStoreError
from tipvote.domain.value_objects.enums import VoteDirection
from tipvote.repositories.votes import LedgerStore

from .state_machine import LedgerAction, Transition, decide_transition, keep

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_READ_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.05


class ConcurrencyGuard:
    """Serialize "read entry, decide, write" per ledger key.

    - Reads are attempted up to ``max_attempts`` times on
      :class:`TransientStoreError`, sleeping ``backoff_factor * 2**attempt``
      plus a little jitter in between. This rides out a concurrent writer's
      in-flight transaction; persistent failures still surface.
    - A write rejected with :class:`ConstraintViolation` means another request
      created the first entry for the key meanwhile. The entry is reloaded,
      the write retried once against it: a duplicate of the same vote is
      kept as is, an opposite vote flips it. A second violation, or an entry
      that vanished meanwhile, raises :class:`ConcurrencyConflict`.
    - A store that serializes whole requests never raises that violation;
      there the request start passed as ``since`` tells a concurrent
      duplicate from a toggle.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_READ_ATTEMPTS,
        backoff_factor: float = DEFAULT_BACKOFF_SECONDS,
        *,
        jitter: float = 0.01,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = int(max_attempts)
        self.backoff_factor = float(backoff_factor)
        self.jitter = float(jitter)
        self._sleep = sleep

    def _compute_sleep_seconds(self, attempt: int) -> float:
        base = self.backoff_factor * float(2**attempt)
        return base + random.uniform(0.0, self.jitter)

    def read(self, fn: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return fn()
            except TransientStoreError as exc:
                attempt += 1
                if attempt >= self.max_attempts:
                    raise
                delay = self._compute_sleep_seconds(attempt - 1)
                logger.warning(
                    "Ledger read failed: %s. Retrying in %.3fs (attempt %d/%d)",
                    exc,
                    delay,
                    attempt,
                    self.max_attempts,
                )
                self._sleep(delay)

    def write(
        self,
        ledger: LedgerStore,
        key: VoteKey,
        requested: VoteDirection,
        at: datetime,
        *,
        since: Optional[datetime] = None,
    ) -> Transition:
        """Apply ``requested`` to the ledger entry of ``key``; return the transition.

        ``since`` is when the request started. An entry with the requested
        direction written after that was cast by a concurrent request that
        the store serialized ahead of this one, so it is kept instead of
        being toggled off.
        """
        entry = self.read(lambda: ledger.get(key))
        if (
            entry is not None
            and since is not None
            and entry.direction == requested
            and entry.updated_at_utc > since
        ):
            logger.info(
                "Concurrent duplicate vote absorbed",
                extra={"vote_key": tuple(key)},
            )
            return keep(requested)
        transition = decide_transition(entry.direction if entry else None, requested)
        try:
            _apply(ledger, key, entry, transition, at)
            return transition
        except ConstraintViolation as exc:
            logger.info(
                "Concurrent first vote detected, reconciling",
                extra={"constraint_key": exc.constraint_key, "vote_key": tuple(key)},
            )

        entry = self.read(lambda: ledger.get(key))
        if entry is None:
            raise ConcurrencyConflict(
                f"Vote on {key.target_type.name.lower()} {key.target_id} by voter "
                f"{key.voter_id} vanished while reconciling"
            )
        transition = _reconcile(entry, requested)
        try:
            _apply(ledger, key, entry, transition, at)
        except ConstraintViolation as exc:
            raise ConcurrencyConflict(
                f"Vote on {key.target_type.name.lower()} {key.target_id} by voter "
                f"{key.voter_id} kept conflicting ({exc.constraint_key})"
            ) from exc
        logger.info(
            "Reconciled concurrent vote as %s",
            transition.action.value,
            extra={"vote_key": tuple(key)},
        )
        return transition


def _reconcile(entry: VoteLedgerEntry, requested: VoteDirection) -> Transition:
    # Same vote already recorded by the racing request.
    if entry.direction == requested:
        return keep(entry.direction)
    return decide_transition(entry.direction, requested)


def _apply(
    ledger: LedgerStore,
    key: VoteKey,
    entry: Optional[VoteLedgerEntry],
    transition: Transition,
    at: datetime,
) -> None:
    if transition.action == LedgerAction.KEEP:
        return
    if transition.action == LedgerAction.REMOVE:
        if entry is None:
            raise ValueError(f"Cannot remove a vote on {key} without a ledger entry")
        ledger.remove(entry.removed(at))
        return
    if transition.current is None:
        raise ValueError(f"{transition.action.value} needs a resulting direction")
    if transition.action == LedgerAction.CREATE:
        ledger.create(VoteLedgerEntry.new(key, transition.current, at))
        return
    if entry is None:
        raise ValueError(f"Cannot update a vote on {key} without a ledger entry")
    ledger.update(entry.with_direction(transition.current, at))
