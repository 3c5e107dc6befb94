"""In-memory ledger used to drive the guard through race conditions."""

from __future__ import annotations

from typing import Optional

from tipvote.domain.entities.vote import VoteKey, VoteLedgerEntry
from tipvote.domain.errors import ConstraintViolation
from tipvote.domain.value_objects.enums import TargetType
from tipvote.domain.value_objects.ids import TargetId
from tipvote.repositories.votes import LedgerStore


class MemoryLedger(LedgerStore):
    def __init__(self) -> None:
        self.entries: list[VoteLedgerEntry] = []
        self.calls: list[str] = []

    def live(self) -> list[VoteLedgerEntry]:
        return [e for e in self.entries if not e.is_deleted]

    def get(self, key: VoteKey) -> Optional[VoteLedgerEntry]:
        self.calls.append("get")
        for entry in self.live():
            if entry.key == key:
                return entry
        return None

    def create(self, entry: VoteLedgerEntry) -> VoteLedgerEntry:
        self.calls.append("create")
        if any(e.key == entry.key for e in self.live()):
            raise ConstraintViolation("ux_votes_live_key")
        stored = entry.model_copy(update={"id": len(self.entries) + 1})
        self.entries.append(stored)
        return stored

    def _replace(self, entry: VoteLedgerEntry) -> None:
        self.entries = [entry if e.id == entry.id else e for e in self.entries]

    def update(self, entry: VoteLedgerEntry) -> None:
        self.calls.append("update")
        self._replace(entry)

    def remove(self, entry: VoteLedgerEntry) -> None:
        self.calls.append("remove")
        self._replace(entry)

    def list_for_target(
        self, target_type: TargetType, target_id: TargetId
    ) -> list[VoteLedgerEntry]:
        return [
            e for e in self.live() if e.target_type == target_type and e.target_id == target_id
        ]


class RacingLedger(MemoryLedger):
    """A ledger where another request writes ``rival`` just before our first create."""

    def __init__(self, rival: Optional[VoteLedgerEntry]) -> None:
        super().__init__()
        self._rival = rival
        self.raced = False

    def create(self, entry: VoteLedgerEntry) -> VoteLedgerEntry:
        if not self.raced:
            self.raced = True
            if self._rival is not None:
                super().create(self._rival)
            raise ConstraintViolation("ux_votes_live_key")
        return super().create(entry)
