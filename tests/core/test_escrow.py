from __future__ import annotations

import pytest

from poolsettle.core.escrow import (
    PoolStatus,
    PositionStatus,
    credit_position,
    debit_position,
    pool_status,
    position_status,
    sweep_shared_remainder,
    try_close_escrow,
    try_close_pool,
    try_close_position,
    withdraw_shared,
)
from poolsettle.errors import NumericOverflowError
from poolsettle.integration import LedgerCurrencyTransfer, LedgerSharedLiquidity
from poolsettle.state.pools import shared_escrow_address


MIN_BAL = 890_880


@pytest.fixture
def currency() -> LedgerCurrencyTransfer:
    return LedgerCurrencyTransfer()


class TestPositions:
    def test_credit_creates_then_accumulates(self, market) -> None:
        pool = market.add_pool()
        positions = market.state.positions

        first, created = credit_position(positions, pool, market.asset, 2)
        assert created and first.asset_amount == 2
        assert first.pool_owner == market.owner
        second, created = credit_position(positions, pool, market.asset, 3)
        assert not created and second.asset_amount == 5
        assert position_status(second) is PositionStatus.OPEN

    def test_debit(self, market) -> None:
        pool = market.add_pool(sell_units=3)
        positions = market.state.positions

        assert debit_position(positions, pool, market.asset, 3).asset_amount == 0
        with pytest.raises(NumericOverflowError):
            debit_position(positions, pool, market.asset, 1)
        with pytest.raises(NumericOverflowError):
            debit_position(positions, pool, "0x" + "a2" * 32, 1)

    def test_close_refunds_rent_to_owner(self, market, currency) -> None:
        pool = market.add_pool(sell_units=1)
        s = market.state
        position = debit_position(s.positions, pool, market.asset, 1)
        assert position_status(position) is PositionStatus.CLOSED

        assert try_close_position(s.positions, s.currency, currency, pool.address, market.asset)
        assert s.positions.get(pool.address, market.asset) is None
        assert s.currency.get(position.address) == 0
        assert s.currency.get(market.owner) == market.config.position_rent

    def test_open_position_stays(self, market, currency) -> None:
        pool = market.add_pool(sell_units=1)
        s = market.state
        assert not try_close_position(s.positions, s.currency, currency, pool.address, market.asset)
        assert s.positions.get(pool.address, market.asset) is not None


class TestCurrencyEscrow:
    def test_dust_moves_to_pool_account(self, market, currency) -> None:
        pool = market.add_pool(buyside=500)
        s = market.state

        assert try_close_escrow(s.currency, currency, pool, MIN_BAL) == 500
        assert s.currency.get(pool.buyside_escrow) == 0
        assert s.currency.get(pool.address) == market.pool_rent + 500

    def test_dust_kept_while_selling(self, market, currency) -> None:
        pool = market.add_pool(buyside=500, sell_units=1)
        assert try_close_escrow(market.state.currency, currency, pool, MIN_BAL) == 0
        assert market.balance(pool.buyside_escrow) == 500

    def test_funded_escrow_kept(self, market, currency) -> None:
        pool = market.add_pool(buyside=MIN_BAL)
        assert try_close_escrow(market.state.currency, currency, pool, MIN_BAL) == 0


class TestSharedLiquidity:
    def test_withdraw_decrements_count(self, market) -> None:
        pool = market.add_pool(shared=True, shared_balance=5_000_000, shared_count=5)
        shared = LedgerSharedLiquidity(program_id=market.shared_program)

        updated = withdraw_shared(market.state.currency, shared, pool, 1_000_000, 1)
        assert updated.shared_escrow_count == 4
        assert market.balance(pool.buyside_escrow) == 1_000_000
        assert market.balance(shared_escrow_address(market.owner)) == 4_000_000

    def test_count_never_underflows(self, market) -> None:
        pool = market.add_pool(shared=True, shared_balance=5_000_000, shared_count=0)
        shared = LedgerSharedLiquidity(program_id=market.shared_program)

        with pytest.raises(NumericOverflowError):
            withdraw_shared(market.state.currency, shared, pool, 1_000_000, 1)
        assert market.balance(pool.buyside_escrow) == 0

    def test_sweep_returns_remainder(self, market, currency) -> None:
        pool = market.add_pool(buyside=100_000, shared=True, shared_balance=5_000_000, shared_count=1)

        assert sweep_shared_remainder(market.state.currency, currency, pool, MIN_BAL) == 100_000
        assert market.balance(pool.buyside_escrow) == 0
        assert market.balance(shared_escrow_address(market.owner)) == 5_100_000

    def test_small_remainder_closes_escrow(self, market, currency) -> None:
        pool = market.add_pool(buyside=100, shared=True)

        assert sweep_shared_remainder(market.state.currency, currency, pool, MIN_BAL) == 0
        assert market.balance(pool.buyside_escrow) == 0
        assert market.balance(pool.address) == market.pool_rent + 100


class TestPoolClose:
    def test_empty_pool_closes(self, market, currency) -> None:
        pool = market.add_pool()
        s = market.state
        assert pool_status(pool) is PoolStatus.EMPTY

        assert try_close_pool(s.pools, s.currency, currency, pool)
        assert pool.address not in s.pools
        assert pool_status(s.pools.get(pool.address)) is PoolStatus.CLOSED
        assert market.balance(market.owner) == market.pool_rent

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"sell_units": 1},
            {"buyside": 1},
            {"shared": True, "shared_count": 1},
        ],
    )
    def test_funded_pool_stays(self, market, currency, kwargs) -> None:
        pool = market.add_pool(**kwargs)
        s = market.state
        assert pool_status(pool) is PoolStatus.FUNDED
        assert not try_close_pool(s.pools, s.currency, currency, pool)
        assert pool.address in s.pools

    def test_refunds_payment_mint_dust(self, market, currency) -> None:
        mint = "0x" + "ee" * 32
        pool = market.add_pool(payment_mint=mint)
        market.fund(pool.address, 42, mint)
        s = market.state

        assert try_close_pool(s.pools, s.currency, currency, pool)
        assert market.balance(market.owner, mint) == 42
        assert market.balance(market.owner) == market.pool_rent
