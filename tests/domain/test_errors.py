import pytest

from tipvote.domain.errors import (
    ConcurrencyConflict,
    ConstraintViolation,
    InvalidVoteDirection,
    StoreError,
    TargetNotFound,
    TipvoteError,
    TransientStoreError,
    UnparseableSelection,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (InvalidVoteDirection(3), 400),
        (TargetNotFound("Position", 9), 404),
        (ConcurrencyConflict("boom"), 409),
        (ConstraintViolation("ux_votes_live_key"), 409),
        (TransientStoreError("locked"), 503),
        (UnparseableSelection("OVER_UNDER", "Over"), 422),
    ],
)
def test_status_codes(error: TipvoteError, status: int) -> None:
    assert error.status_code == status
    assert isinstance(error, RuntimeError)


def test_messages_and_fields() -> None:
    err = TargetNotFound("Position", 9)
    assert str(err) == "Position with ID 9 not found"
    violation = ConstraintViolation("ux_votes_live_key")
    assert violation.constraint_key == "ux_votes_live_key"
    assert isinstance(violation, StoreError)
    assert TipvoteError("x", status_code=418).status_code == 418
