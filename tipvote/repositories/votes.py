from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional

from tipvote.domain.entities.vote import VoteKey, VoteLedgerEntry
from tipvote.domain.value_objects.enums import TargetType
from tipvote.domain.value_objects.ids import TargetId

from .counters import CounterStore


class LedgerStore(ABC):
    """Per (voter, target) record of the current vote direction.

    Implementations must report a write that would create a second live entry
    for the same key as :class:`tipvote.domain.errors.ConstraintViolation` and
    a temporarily unavailable store as
    :class:`tipvote.domain.errors.TransientStoreError`.
    """

    @abstractmethod
    def get(self, key: VoteKey) -> Optional[VoteLedgerEntry]:
        """Return the live entry for ``key`` or ``None``."""

    @abstractmethod
    def create(self, entry: VoteLedgerEntry) -> VoteLedgerEntry:
        """Persist a new live entry and return it with its identifier."""

    @abstractmethod
    def update(self, entry: VoteLedgerEntry) -> None:
        """Persist a direction change of an existing entry."""

    @abstractmethod
    def remove(self, entry: VoteLedgerEntry) -> None:
        """Soft-delete an entry so the key has no live vote."""

    @abstractmethod
    def list_for_target(
        self, target_type: TargetType, target_id: TargetId
    ) -> list[VoteLedgerEntry]:
        """List the live entries on one target."""


class VoteUnitOfWork(ABC):
    """Ledger and counters sharing one all-or-nothing transaction boundary."""

    @property
    @abstractmethod
    def ledger(self) -> LedgerStore:
        """The vote ledger bound to this unit of work."""

    @property
    @abstractmethod
    def counters(self) -> CounterStore:
        """The counter store bound to this unit of work."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Commit everything written inside the block, or nothing on error."""
