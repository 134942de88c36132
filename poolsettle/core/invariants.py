"""Invariant checkers for pool settlement state.

Each function returns True when the invariant holds for one pool, and
`check_pool()` / `check_all()` return the violated invariant IDs (empty = all
pass). Settlement checks the pool it touched before committing.
"""

from __future__ import annotations

from typing import Callable

from ..state.pools import BPS_DENOM, Pool
from ..state.store import SettlementState


def inv_sellside_matches_positions(pool: Pool, s: SettlementState) -> bool:
    return pool.sellside_asset_amount == s.positions.total_for_pool(pool.address)


def inv_positions_match_escrow(pool: Pool, s: SettlementState) -> bool:
    return all(
        s.assets.get(pool.address, position.asset_id) == position.asset_amount
        for position in s.positions.for_pool(pool.address)
    )


def inv_positions_nonempty(pool: Pool, s: SettlementState) -> bool:
    return all(position.asset_amount > 0 for position in s.positions.for_pool(pool.address))


def inv_buyside_mirrors_escrow(pool: Pool, s: SettlementState) -> bool:
    return pool.buyside_payment_amount == s.currency.get(pool.buyside_escrow, pool.payment_mint)


def inv_fee_rates_in_range(pool: Pool, s: SettlementState) -> bool:
    return 0 <= pool.lp_fee_bp <= BPS_DENOM and 0 <= pool.buyside_creator_royalty_bp <= BPS_DENOM


def inv_shared_count_linked(pool: Pool, s: SettlementState) -> bool:
    return pool.shared_escrow_count == 0 or pool.using_shared_escrow()


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[Pool, SettlementState], bool]] = {
    "inv_sellside_matches_positions": inv_sellside_matches_positions,
    "inv_positions_match_escrow": inv_positions_match_escrow,
    "inv_positions_nonempty": inv_positions_nonempty,
    "inv_buyside_mirrors_escrow": inv_buyside_mirrors_escrow,
    "inv_fee_rates_in_range": inv_fee_rates_in_range,
    "inv_shared_count_linked": inv_shared_count_linked,
}


def check_pool(state: SettlementState, pool: Pool) -> list[str]:
    """Return list of violated invariant IDs for `pool` (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pool, state)
    ]


def check_all(state: SettlementState) -> list[str]:
    """Violations across every pool, as ``"<inv_id>:<pool address>"``."""
    out: list[str] = []
    for address in sorted(state.pools):
        out.extend(f"{inv_id}:{address}" for inv_id in check_pool(state, state.pools[address]))
    return out
