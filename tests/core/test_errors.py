from __future__ import annotations

import pytest

from poolsettle.errors import (
    ErrorCode,
    InvalidRequestedPriceError,
    InvariantError,
    LiquidityError,
    NumericOverflowError,
    SettlementError,
    ValidationError,
    error_for,
)


@pytest.mark.parametrize(
    "code,cls",
    [
        (ErrorCode.NUMERIC_OVERFLOW, NumericOverflowError),
        (ErrorCode.INVALID_REQUESTED_PRICE, InvalidRequestedPriceError),
        (ErrorCode.NOT_ENOUGH_BALANCE, LiquidityError),
        (ErrorCode.NOT_EMPTY_ESCROW_ACCOUNT, LiquidityError),
        (ErrorCode.EXPIRED, ValidationError),
        (ErrorCode.INVALID_CREATOR_ADDRESS, ValidationError),
    ],
)
def test_error_for_picks_class(code, cls) -> None:
    err = error_for(code, "detail")
    assert type(err) is cls
    assert err.code is code
    assert str(err) == f"{code.value}: detail"


def test_invariant_error_lists_violations() -> None:
    err = InvariantError(["inv_a", "inv_b"])
    assert isinstance(err, SettlementError)
    assert err.code is ErrorCode.INVARIANT_VIOLATION
    assert err.violations == ["inv_a", "inv_b"]
    assert str(err) == "InvariantViolation: inv_a,inv_b"
