from __future__ import annotations

import pytest

from poolsettle.errors import ErrorCode, NumericOverflowError, ValidationError
from poolsettle.state import CurveKind, Pool
from poolsettle.state.authority import DerivedAuthority, SignerAuthority
from poolsettle.state.pools import U64_MAX, escrow_authority, pool_authority


OWNER = "0x" + "0a" * 32


def _pool(**kwargs) -> Pool:
    kwargs.setdefault("spot_price", 1_000)
    kwargs.setdefault("curve_type", CurveKind.LINEAR)
    kwargs.setdefault("curve_delta", 10)
    return Pool(owner=OWNER, uuid="u", **kwargs)


@pytest.mark.parametrize(
    "kwargs,code",
    [
        ({"curve_type": "LINEAR"}, ErrorCode.INVALID_CURVE_TYPE),
        ({"curve_delta": -1}, ErrorCode.INVALID_CURVE_DELTA),
        ({"curve_type": CurveKind.EXPONENTIAL, "curve_delta": 10_001}, ErrorCode.INVALID_CURVE_DELTA),
        ({"lp_fee_bp": 10_001}, ErrorCode.INVALID_LP_FEE),
        ({"buyside_creator_royalty_bp": -1}, ErrorCode.INVALID_BP),
        ({"cosigner": OWNER}, ErrorCode.INVALID_COSIGNER),
        ({"cosigner_annotation": "0x1234"}, ErrorCode.INVALID_COSIGNER),
        ({"allowlists": ()}, ErrorCode.INVALID_ALLOWLISTS),
        ({"shared_escrow_count": 1}, ErrorCode.INVALID_ACCOUNTS),
    ],
)
def test_rejects_invalid_parameters(kwargs, code) -> None:
    with pytest.raises(ValidationError) as exc:
        _pool(**kwargs)
    assert exc.value.code is code


def test_amounts_stay_in_u64() -> None:
    _pool(spot_price=U64_MAX)
    with pytest.raises(NumericOverflowError):
        _pool(spot_price=U64_MAX + 1)
    with pytest.raises(NumericOverflowError):
        _pool(sellside_asset_amount=-1)


def test_annotation_is_canonicalized() -> None:
    assert _pool(cosigner_annotation="AB" * 32).cosigner_annotation == "0x" + "ab" * 32


def test_expiry() -> None:
    assert not _pool().is_expired(10**12)
    pool = _pool(expiry=100)
    assert not pool.is_expired(99)
    assert pool.is_expired(100)


def test_derived_authorities() -> None:
    pool = _pool()
    assert pool_authority(pool).authorizes(pool.address)
    assert escrow_authority(pool).authorizes(pool.buyside_escrow)
    assert not escrow_authority(pool).authorizes(pool.address)
    forged = DerivedAuthority(label="mmm_pool", seeds=(OWNER, "other"), address=pool.address)
    assert not forged.authorizes(pool.address)
    assert SignerAuthority(OWNER).authorizes(OWNER)
