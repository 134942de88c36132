"""Checked integer arithmetic for the settlement core.

Python ints never overflow, so the u64/i64 domains of balances, prices and
signed fees are enforced explicitly. Every helper raises
``NumericOverflowError`` instead of wrapping or saturating; the only
saturating helper is ``saturating_sub_u64`` and callers name it on purpose.

Division is Python's ``//`` (floor toward -inf) throughout.
"""

from __future__ import annotations

from ..errors import NumericOverflowError
from ..state.balances import I64_MAX, I64_MIN, U64_MAX


def _is_int(x: object) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def require_u64(x: int, name: str = "value") -> int:
    if not _is_int(x) or x < 0 or x > U64_MAX:
        raise NumericOverflowError(f"{name} out of u64 range: {x!r}")
    return x


def require_i64(x: int, name: str = "value") -> int:
    if not _is_int(x) or x < I64_MIN or x > I64_MAX:
        raise NumericOverflowError(f"{name} out of i64 range: {x!r}")
    return x


def checked_add_u64(a: int, b: int) -> int:
    return require_u64(a + b, "sum")


def checked_sub_u64(a: int, b: int) -> int:
    return require_u64(a - b, "difference")


def checked_mul_u64(a: int, b: int) -> int:
    return require_u64(a * b, "product")


def saturating_sub_u64(a: int, b: int) -> int:
    return max(a - b, 0)


def checked_add_i64(a: int, b: int) -> int:
    return require_i64(a + b, "signed sum")


def u64_from_i64(x: int) -> int:
    """Signed-to-unsigned conversion; negative values are not representable."""
    return require_u64(require_i64(x), "unsigned conversion")


def mul_div_floor(a: int, b: int, denom: int) -> int:
    """floor(a * b / denom) with an unbounded intermediate (u128-style)."""
    if denom <= 0:
        raise ValueError("denom must be positive")
    return (a * b) // denom
