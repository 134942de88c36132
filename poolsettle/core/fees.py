"""
Fee & royalty kernels (deterministic, integer-only).

All rates are basis points (1/10_000) and every amount is
``floor(base * rate / 10_000)``. Maker/taker rates are signed: a negative
rate is a rebate. The referral recipient receives ``maker_fee + taker_fee``.

The fee *base* depends on the direction:

- buyer buys from the pool: every fee is rated on ``total_price``;
- seller sells into the pool: the pool pays lp fee and royalty on top of what
  the seller nets, so ``seller_receives`` is the gross price grossed *down*
  and lp/maker/taker/royalty are rated on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import ErrorCode, NumericOverflowError, ValidationError
from ..state.assets import AssetMetadata, DynamicRoyalty
from ..state.pools import BPS_DENOM, Pool
from .checked import (
    checked_add_i64,
    checked_add_u64,
    mul_div_floor,
    require_i64,
    require_u64,
    u64_from_i64,
)


MAX_SIGNED_FEE_BP = 10_000


@dataclass(frozen=True)
class FeeBreakdown:
    total_price: int
    next_price: int
    lp_fee: int
    maker_fee: int
    taker_fee: int
    referral_fee: int
    royalty_bp: int
    royalty: int
    seller_receives: int

    def __post_init__(self) -> None:
        for name in ("total_price", "next_price", "lp_fee", "referral_fee", "royalty", "seller_receives"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


def lp_fee_bp(pool: Pool, buyside_balance: int) -> int:
    """
    Effective lp fee rate.

    The lp fee is only charged while the pool quotes both sides: at least one
    unit on the sell side and enough buy-side currency for one unit at spot.
    """
    if pool.sellside_asset_amount < 1:
        return 0
    if buyside_balance < pool.spot_price:
        return 0
    return pool.lp_fee_bp


def lp_fee(amount: int, bp: int) -> int:
    if not (0 <= bp <= BPS_DENOM):
        raise ValidationError(ErrorCode.INVALID_LP_FEE, f"lp fee bp out of range: {bp}")
    return require_u64(mul_div_floor(require_u64(amount, "lp fee base"), bp, BPS_DENOM), "lp fee")


def assert_valid_fees_bp(maker_fee_bp: int, taker_fee_bp: int) -> None:
    for name, v in (("maker_fee_bp", maker_fee_bp), ("taker_fee_bp", taker_fee_bp)):
        if not isinstance(v, int) or isinstance(v, bool) or abs(v) > MAX_SIGNED_FEE_BP:
            raise ValidationError(ErrorCode.INVALID_BP, f"{name} must be in [-10000, 10000]: {v!r}")


def signed_fee(amount: int, bp: int) -> int:
    """floor(amount * bp / 10000) as an i64 (negative for rebates)."""
    return require_i64(mul_div_floor(require_u64(amount, "fee base"), bp, BPS_DENOM), "signed fee")


def referral_fee(maker_fee: int, taker_fee: int) -> int:
    """maker + taker as a transferable amount; a negative sum is a NumericOverflow."""
    return u64_from_i64(checked_add_i64(maker_fee, taker_fee))


def buyside_seller_receives(
    total_price: int,
    lp_fee_bp: int,
    royalty_bp: int,
    buyside_creator_royalty_bp: int,
) -> int:
    """
    Largest amount the seller can net so that the lp fee and the royalty,
    both rated on it, still fit inside `total_price`:

        floor(total * 10000 / (10000 + lp_bp + royalty_bp * buyside_creator_bp / 10000))
    """
    royalty_part = (royalty_bp * buyside_creator_royalty_bp) // BPS_DENOM
    denom = BPS_DENOM + lp_fee_bp + royalty_part
    return require_u64(mul_div_floor(require_u64(total_price, "total_price"), BPS_DENOM, denom), "seller receives")


def royalty_amount(base: int, royalty_bp: int, buyside_creator_royalty_bp: int = BPS_DENOM) -> int:
    if not (0 <= royalty_bp <= BPS_DENOM):
        raise ValidationError(ErrorCode.INVALID_BP, f"royalty bp out of range: {royalty_bp}")
    declared = mul_div_floor(require_u64(base, "royalty base"), royalty_bp, BPS_DENOM)
    return require_u64(mul_div_floor(declared, buyside_creator_royalty_bp, BPS_DENOM), "royalty")


def clip_royalty(total_price: int, charged_fees: int, royalty: int) -> int:
    """Clip `royalty` so that charged fees plus royalty never exceed `total_price`."""
    remainder = total_price - charged_fees
    if remainder < 0:
        raise NumericOverflowError(f"fees {charged_fees} exceed total price {total_price}")
    return min(royalty, remainder)


def _charged(lp: int, maker: int, taker: int) -> int:
    return checked_add_u64(checked_add_u64(lp, max(maker, 0)), max(taker, 0))


def compute_fulfill_sell_fees(
    total_price: int,
    lp_fee_bp: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    royalty_bp: int,
    *,
    next_price: int = 0,
) -> FeeBreakdown:
    """
    Fee breakdown when a buyer buys from the pool; every class is rated on
    `total_price`. Royalty is clipped to whatever the other fee classes leave
    of the total price.
    """
    assert_valid_fees_bp(maker_fee_bp, taker_fee_bp)
    lp = lp_fee(total_price, lp_fee_bp)
    maker = signed_fee(total_price, maker_fee_bp)
    taker = signed_fee(total_price, taker_fee_bp)
    referral = referral_fee(maker, taker)
    royalty = clip_royalty(total_price, _charged(lp, maker, taker), royalty_amount(total_price, royalty_bp))
    return FeeBreakdown(
        total_price=total_price,
        next_price=next_price,
        lp_fee=lp,
        maker_fee=maker,
        taker_fee=taker,
        referral_fee=referral,
        royalty_bp=royalty_bp,
        royalty=royalty,
        seller_receives=u64_from_i64(total_price - maker),
    )


def compute_fulfill_buy_fees(
    total_price: int,
    lp_fee_bp: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    royalty_bp: int,
    buyside_creator_royalty_bp: int,
    *,
    next_price: int = 0,
) -> FeeBreakdown:
    """
    Fee breakdown when a seller sells into the pool; lp fee, royalty and the
    maker/taker fees are rated on `seller_receives`, not on the gross price.
    """
    assert_valid_fees_bp(maker_fee_bp, taker_fee_bp)
    if not (0 <= royalty_bp <= BPS_DENOM):
        raise ValidationError(ErrorCode.INVALID_BP, f"royalty bp out of range: {royalty_bp}")
    receives = buyside_seller_receives(total_price, lp_fee_bp, royalty_bp, buyside_creator_royalty_bp)
    lp = lp_fee(receives, lp_fee_bp)
    maker = signed_fee(receives, maker_fee_bp)
    taker = signed_fee(receives, taker_fee_bp)
    referral = referral_fee(maker, taker)
    royalty = clip_royalty(
        total_price,
        _charged(lp, maker, taker),
        royalty_amount(receives, royalty_bp, buyside_creator_royalty_bp),
    )
    return FeeBreakdown(
        total_price=total_price,
        next_price=next_price,
        lp_fee=lp,
        maker_fee=maker,
        taker_fee=taker,
        referral_fee=referral,
        royalty_bp=royalty_bp,
        royalty=royalty,
        seller_receives=receives,
    )


def fees(
    total_price: int,
    lp_fee_bp: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    royalty_bp: int,
) -> FeeBreakdown:
    """Fee breakdown rated on `total_price` (see compute_fulfill_sell_fees)."""
    return compute_fulfill_sell_fees(total_price, lp_fee_bp, maker_fee_bp, taker_fee_bp, royalty_bp)


def metadata_royalty_bp(
    total_price: int,
    metadata: AssetMetadata,
    policy: Optional[DynamicRoyalty] = None,
) -> int:
    """
    Declared royalty rate for one settlement.

    An explicit `policy` wins over the asset's own; without either, the
    asset's `seller_fee_bp` applies unscaled.
    """
    bp = metadata.seller_fee_bp
    policy = policy if policy is not None else metadata.royalty_policy
    if policy is not None:
        bp = mul_div_floor(bp, policy.multiplier_bp(total_price), BPS_DENOM)
    if not (0 <= bp <= BPS_DENOM):
        raise ValidationError(ErrorCode.INVALID_BP, f"royalty bp out of range: {bp}")
    return bp
