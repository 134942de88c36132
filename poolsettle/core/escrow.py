"""
Escrow state machine: positions, the currency escrow, shared liquidity and
pool closure.

Lifecycles:

- Pool: FUNDED (either side holds liquidity, or shared liquidity still covers
  units) -> EMPTY -> CLOSED. ``try_close_pool`` takes the EMPTY -> CLOSED edge
  and is attempted after every fulfillment.
- Position: OPEN while ``asset_amount > 0``; CLOSED (record removed, rent
  refunded to the pool owner) exactly when it reaches 0.

All helpers mutate the tables they are handed. Callers pass scratch copies
and discard them on failure.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..errors import NumericOverflowError
from ..state.assets import AssetId
from ..state.authority import SignerAuthority
from ..state.balances import NATIVE_MINT, Address, Amount, BalanceTable
from ..state.pools import Pool, escrow_authority, pool_authority
from ..state.positions import Position, PositionTable, position_authority
from .checked import checked_add_u64, checked_sub_u64

if TYPE_CHECKING:
    from ..integration.collaborators import CurrencyTransfer, SharedLiquidity


class PoolStatus(Enum):
    FUNDED = "FUNDED"
    EMPTY = "EMPTY"
    CLOSED = "CLOSED"


class PositionStatus(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


def pool_status(pool: Optional[Pool]) -> PoolStatus:
    if pool is None:
        return PoolStatus.CLOSED
    if pool.sellside_asset_amount or pool.buyside_payment_amount:
        return PoolStatus.FUNDED
    if pool.using_shared_escrow() and pool.shared_escrow_count:
        return PoolStatus.FUNDED
    return PoolStatus.EMPTY


def position_status(position: Optional[Position]) -> PositionStatus:
    if position is None or position.asset_amount == 0:
        return PositionStatus.CLOSED
    return PositionStatus.OPEN


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


def credit_position(
    positions: PositionTable,
    pool: Pool,
    asset_id: AssetId,
    amount: Amount,
) -> Tuple[Position, bool]:
    """Add `amount` units to the position, creating it if needed. Returns (position, created)."""
    current = positions.get(pool.address, asset_id)
    if current is None:
        position = Position(
            pool=pool.address,
            pool_owner=pool.owner,
            asset_id=asset_id,
            asset_amount=checked_add_u64(0, amount),
            cosigner_annotation=pool.cosigner_annotation,
        )
        positions.put(position)
        return position, True
    position = replace(current, asset_amount=checked_add_u64(current.asset_amount, amount))
    positions.put(position)
    return position, False


def debit_position(positions: PositionTable, pool: Pool, asset_id: AssetId, amount: Amount) -> Position:
    """
    Remove `amount` units from the position.

    Raises:
        NumericOverflowError: the position holds fewer units (or does not exist)
    """
    current = positions.get(pool.address, asset_id)
    if current is None:
        raise NumericOverflowError(f"no position for asset {asset_id[:18]}...")
    position = replace(current, asset_amount=checked_sub_u64(current.asset_amount, amount))
    positions.put(position)
    return position


def charge_position_rent(
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    payer: Address,
    position: Position,
    rent: Amount,
) -> None:
    """The fulfiller funds the storage of a newly created position."""
    currency.transfer(ledger, payer, position.address, rent, NATIVE_MINT, SignerAuthority(payer))


def try_close_position(
    positions: PositionTable,
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    pool: Address,
    asset_id: AssetId,
) -> bool:
    """Close an emptied position; its rent goes to the pool owner recorded on it."""
    position = positions.get(pool, asset_id)
    if position is None or position.asset_amount != 0:
        return False
    rent = ledger.get(position.address, NATIVE_MINT)
    currency.transfer(
        ledger,
        position.address,
        position.pool_owner,
        rent,
        NATIVE_MINT,
        position_authority(pool, asset_id),
    )
    positions.remove(pool, asset_id)
    return True


# ---------------------------------------------------------------------------
# Currency escrow
# ---------------------------------------------------------------------------


def try_close_escrow(
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    pool: Pool,
    min_account_balance: Amount,
) -> Amount:
    """
    Close a currency escrow left holding dust.

    A positive balance below `min_account_balance` cannot stay open on its
    own. When the pool has nothing left to sell, or draws its buy-side funds
    from shared liquidity, the dust moves to the pool account (the owner
    recovers it when the pool closes). Returns the amount moved.
    """
    escrow = pool.buyside_escrow
    balance = ledger.get(escrow, pool.payment_mint)
    if balance == 0 or balance >= min_account_balance:
        return 0
    if pool.sellside_asset_amount != 0 and not pool.using_shared_escrow():
        return 0
    currency.transfer(ledger, escrow, pool.address, balance, pool.payment_mint, escrow_authority(pool))
    return balance


# ---------------------------------------------------------------------------
# Shared liquidity
# ---------------------------------------------------------------------------


def withdraw_shared(
    ledger: BalanceTable,
    shared: "SharedLiquidity",
    pool: Pool,
    amount: Amount,
    units: Amount,
) -> Pool:
    """
    Pull `amount` from the owner's shared escrow into the pool's local escrow.

    ``shared_escrow_count`` drops by `units`; it never goes below zero.
    """
    count = checked_sub_u64(pool.shared_escrow_count, units)
    shared.withdraw(
        ledger,
        pool.owner,
        pool.shared_escrow_account,
        pool.buyside_escrow,
        amount,
        pool.payment_mint,
    )
    return replace(pool, shared_escrow_count=count)


def deposit_shared(
    ledger: BalanceTable,
    shared: "SharedLiquidity",
    pool: Pool,
    payer: Address,
    amount: Amount,
    units: Amount,
) -> Pool:
    """Route sale proceeds of a reinvesting pool straight into shared liquidity."""
    count = checked_add_u64(pool.shared_escrow_count, units)
    shared.deposit(
        ledger,
        pool.owner,
        payer,
        pool.shared_escrow_account,
        amount,
        pool.payment_mint,
        SignerAuthority(payer),
    )
    return replace(pool, shared_escrow_count=count)


def sweep_shared_remainder(
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    pool: Pool,
    min_account_balance: Amount,
) -> Amount:
    """
    Return the local escrow remainder to shared liquidity.

    The sweep happens when the local escrow is non-empty and the shared escrow
    ends above the minimum balance; otherwise the local escrow is closed.
    Returns the amount swept.
    """
    local = ledger.get(pool.buyside_escrow, pool.payment_mint)
    shared_balance = ledger.get(pool.shared_escrow_account, pool.payment_mint)
    if local > 0 and shared_balance + local > min_account_balance:
        currency.transfer(
            ledger,
            pool.buyside_escrow,
            pool.shared_escrow_account,
            local,
            pool.payment_mint,
            escrow_authority(pool),
        )
        return local
    try_close_escrow(ledger, currency, pool, min_account_balance)
    return 0


# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------


def try_close_pool(
    pools: Dict[Address, Pool],
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    pool: Pool,
) -> bool:
    """
    Close `pool` when both sides are empty and shared liquidity covers no units.

    The pool record is removed and everything the pool account holds (its rent
    plus any escrow dust) is refunded to the owner.
    """
    if pool_status(pool) != PoolStatus.EMPTY:
        return False
    authority = pool_authority(pool)
    mints = [NATIVE_MINT] if pool.payment_mint == NATIVE_MINT else [NATIVE_MINT, pool.payment_mint]
    for mint in mints:
        currency.transfer(ledger, pool.address, pool.owner, ledger.get(pool.address, mint), mint, authority)
    pools.pop(pool.address, None)
    return True
