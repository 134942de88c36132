"""
Pricing curve engine (deterministic, integer-only).

Directions are named from the counterparty's side:

- ``BUYER_BUYS``: the pool sells from its sell side; the price steps up
  *before* each unit, so unit k (k = 1..n) costs step_up^k(spot).
- ``BUYER_SELLS``: the pool buys with its buy side; unit k (k = 0..n-1) pays
  step_down^k(spot) and the next spot is step_down^n(spot).

Buying n units and selling them back walks the same price ladder in reverse,
so a round trip on a linear curve restores the spot price exactly.

Exponential steps floor once per unit; the batch total is the sum of the
floored unit prices.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from ..errors import ErrorCode, NumericOverflowError, ValidationError
from ..state.pools import BPS_DENOM, CurveKind, Pool
from .checked import checked_add_u64, checked_mul_u64, checked_sub_u64, require_u64


class Direction(Enum):
    BUYER_BUYS = "BUYER_BUYS"  # fulfill_sell
    BUYER_SELLS = "BUYER_SELLS"  # fulfill_buy


def step_up(price: int, curve: CurveKind, delta: int) -> int:
    if curve == CurveKind.LINEAR:
        return checked_add_u64(price, delta)
    return require_u64((price * (BPS_DENOM + delta)) // BPS_DENOM, "exponential price")


def step_down(price: int, curve: CurveKind, delta: int) -> int:
    """One step down; raises NumericOverflowError below zero (linear only)."""
    if curve == CurveKind.LINEAR:
        return checked_sub_u64(price, delta)
    return (price * BPS_DENOM) // (BPS_DENOM + delta)


def unit_prices(spot_price: int, curve: CurveKind, delta: int, n: int, direction: Direction) -> List[int]:
    """Per-unit prices of a batch of `n` units, in fill order."""
    _check_inputs(spot_price, delta, n)
    prices: List[int] = []
    p = spot_price
    if direction == Direction.BUYER_BUYS:
        for _ in range(n):
            p = step_up(p, curve, delta)
            prices.append(p)
    else:
        for k in range(n):
            if k:
                p = step_down(p, curve, delta)
            prices.append(p)
    return prices


def total_price_and_next_price(
    spot_price: int,
    curve: CurveKind,
    delta: int,
    n: int,
    direction: Direction,
) -> Tuple[int, int]:
    """
    Total price of `n` units and the resulting spot price.

    Linear curves use the arithmetic-series closed forms. Exponential curves
    walk the ladder unit by unit until the floored step stops moving the
    price; from there every remaining unit costs the same.

    Raises:
        ValidationError(INVALID_ASSET_AMOUNT): n < 1
        NumericOverflowError: a unit price or the total leaves the u64 range,
            or a paid unit price would be negative
    """
    _check_inputs(spot_price, delta, n)

    if curve == CurveKind.LINEAR:
        if direction == Direction.BUYER_BUYS:
            # n*p + delta*n(n+1)/2, last unit p + n*delta
            last = checked_add_u64(spot_price, checked_mul_u64(n, delta))
            total = checked_add_u64(
                checked_mul_u64(n, spot_price),
                checked_mul_u64(delta, (n * (n + 1)) // 2),
            )
            return total, last
        # n*p - delta*n(n-1)/2; the cheapest paid unit is p - (n-1)*delta
        if checked_mul_u64(n - 1, delta) > spot_price:
            raise NumericOverflowError(
                f"unit price below zero: spot={spot_price} delta={delta} n={n}"
            )
        total = checked_sub_u64(
            checked_mul_u64(n, spot_price),
            checked_mul_u64(delta, (n * (n - 1)) // 2),
        )
        next_price = max(spot_price - n * delta, 0)
        return total, next_price

    total = 0
    p = spot_price
    if direction == Direction.BUYER_BUYS:
        for k in range(n):
            nxt = step_up(p, curve, delta)
            if nxt == p:
                # the floor pins the price: the remaining n - k units all cost p
                return checked_add_u64(total, checked_mul_u64(n - k, p)), p
            p = nxt
            total = checked_add_u64(total, p)
        return total, p
    for k in range(n):
        total = checked_add_u64(total, p)
        nxt = step_down(p, curve, delta)
        if nxt == p:
            # pinned (delta 0, or the price has reached 0)
            return checked_add_u64(total, checked_mul_u64(n - k - 1, p)), p
        p = nxt
    return total, p


def price(pool: Pool, unit_count: int, direction: Direction) -> Tuple[int, int]:
    """`(total_price, next_spot_price)` for `unit_count` units against `pool`."""
    return total_price_and_next_price(
        pool.spot_price, pool.curve_type, pool.curve_delta, unit_count, direction
    )


def _check_inputs(spot_price: int, delta: int, n: int) -> None:
    if not isinstance(n, int) or isinstance(n, bool) or n < 1:
        raise ValidationError(ErrorCode.INVALID_ASSET_AMOUNT, f"unit count must be >= 1: {n!r}")
    require_u64(n, "unit count")
    require_u64(spot_price, "spot_price")
    require_u64(delta, "curve_delta")
