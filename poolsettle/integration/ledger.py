"""
In-memory currency transfer and shared-liquidity adapters over a BalanceTable.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ErrorCode, LiquidityError, NumericOverflowError, ValidationError
from ..state.authority import Authority
from ..state.balances import Address, Amount, BalanceTable, MintId
from ..state.pools import shared_escrow_address


def _move(ledger: BalanceTable, src: Address, dst: Address, amount: Amount, mint: MintId) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise NumericOverflowError(f"invalid transfer amount: {amount!r}")
    available = ledger.get(src, mint)
    if available < amount:
        raise LiquidityError(
            ErrorCode.NOT_ENOUGH_BALANCE,
            f"{src[:18]}... holds {available}, needs {amount}",
        )
    ledger.move(src, dst, mint, amount)


class LedgerCurrencyTransfer:
    """Currency transfers that require the source's authority."""

    def transfer(
        self,
        ledger: BalanceTable,
        src: Address,
        dst: Address,
        amount: Amount,
        mint: MintId,
        authority: Authority,
    ) -> None:
        if not authority.authorizes(src):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"transfer from {src[:18]}... not authorized")
        if amount == 0:
            return
        _move(ledger, src, dst, amount, mint)


@dataclass(frozen=True)
class LedgerSharedLiquidity:
    """
    Shared escrow held by a lending program on behalf of a pool owner.

    The program releases funds only from the owner's own shared escrow and only
    into accounts the program is called for; deposits need the depositor's
    authority.
    """

    program_id: Address

    def withdraw(
        self,
        ledger: BalanceTable,
        owner: Address,
        source: Address,
        dest: Address,
        amount: Amount,
        mint: MintId,
    ) -> None:
        if source != shared_escrow_address(owner):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared escrow does not belong to the pool owner")
        if amount == 0:
            return
        _move(ledger, source, dest, amount, mint)

    def deposit(
        self,
        ledger: BalanceTable,
        owner: Address,
        source: Address,
        dest: Address,
        amount: Amount,
        mint: MintId,
        authority: Authority,
    ) -> None:
        if dest != shared_escrow_address(owner):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared escrow does not belong to the pool owner")
        if not authority.authorizes(source):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"deposit from {source[:18]}... not authorized")
        if amount == 0:
            return
        _move(ledger, source, dest, amount, mint)
