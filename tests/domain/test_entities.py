from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import NOW, make_position, make_result
from tipvote.domain.entities.vote import VoteKey, VoteLedgerEntry
from tipvote.domain.errors import PositionAlreadySettled
from tipvote.domain.value_objects.enums import (
    PositionStatus,
    SettlementOutcome,
    TargetType,
    VoteDirection,
)
from tipvote.domain.value_objects.ids import TargetId, VoterId


def test_position_quantizes_odds() -> None:
    p = make_position(odds="2.345")
    assert p.odds == Decimal("2.34")
    with pytest.raises(ValidationError):
        make_position(odds="1.00")


def test_position_requires_aware_timestamps() -> None:
    with pytest.raises(ValidationError):
        make_position(created_at_utc=datetime(2025, 1, 1))


def test_position_settled_time_must_match_status() -> None:
    with pytest.raises(ValidationError):
        make_position(settled_at_utc=NOW)
    with pytest.raises(ValidationError):
        make_position(status=PositionStatus.WON)


def test_position_settles_once() -> None:
    p = make_position(id=1)
    settled = p.settle(SettlementOutcome.WON, NOW)
    assert settled.status is PositionStatus.WON
    assert settled.settled_at_utc == NOW
    assert settled.is_settled
    assert not p.is_settled
    with pytest.raises(PositionAlreadySettled) as excinfo:
        settled.settle(SettlementOutcome.LOST, NOW)
    assert excinfo.value.status_code == 409


def test_event_result_converts_to_utc() -> None:
    from datetime import timedelta

    cet = timezone(timedelta(hours=1))
    result = make_result(settled_at_utc=datetime(2025, 3, 1, 19, 0, tzinfo=cet))
    assert result.settled_at_utc == NOW
    assert result.settled_at_utc.tzinfo == timezone.utc


def test_ledger_entry_transitions() -> None:
    key = VoteKey(VoterId(1), TargetType.POSITION, TargetId(5))
    entry = VoteLedgerEntry.new(key, VoteDirection.UPVOTE, NOW)
    assert entry.key == key
    assert entry.created_at_utc == entry.updated_at_utc == NOW
    flipped = entry.with_direction(VoteDirection.DOWNVOTE, NOW)
    assert flipped.direction is VoteDirection.DOWNVOTE
    removed = flipped.removed(NOW)
    assert removed.is_deleted
    assert not entry.is_deleted
