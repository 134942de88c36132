from __future__ import annotations

from dataclasses import replace

from poolsettle.core.invariants import INVARIANT_REGISTRY, check_all, check_pool


def test_fresh_pools_pass(market) -> None:
    market.add_pool(buyside=1_000_000, sell_units=3)
    market.add_pool(shared=True, shared_balance=10, shared_count=2)
    assert check_all(market.state) == []


def test_sellside_drift_is_reported(market) -> None:
    pool = market.add_pool(sell_units=3)
    drifted = replace(pool, sellside_asset_amount=4)
    market.state.pools[pool.address] = drifted

    assert check_pool(market.state, drifted) == ["inv_sellside_matches_positions"]
    assert check_all(market.state) == [f"inv_sellside_matches_positions:{pool.address}"]


def test_escrow_mismatch_is_reported(market) -> None:
    pool = market.add_pool(buyside=1_000, sell_units=1)
    market.fund(pool.buyside_escrow, 999)
    market.state.assets.deposit(pool.address, market.asset, 1)

    assert set(check_pool(market.state, pool)) == {
        "inv_buyside_mirrors_escrow",
        "inv_positions_match_escrow",
    }


def test_registry_names_match_functions() -> None:
    for inv_id, fn in INVARIANT_REGISTRY.items():
        assert fn.__name__ == inv_id
