from __future__ import annotations

from typing import Optional

import pytest

from poolsettle.config import SettlementConfig
from poolsettle.core.accounts import AuxAccount, AuxTag
from poolsettle.core.settlement import Collaborators, FulfillAccounts
from poolsettle.integration.ledger import LedgerSharedLiquidity
from poolsettle.state import (
    AssetMetadata,
    CurveKind,
    NATIVE_MINT,
    Pool,
    Position,
    SettlementState,
)
from poolsettle.state.pools import shared_escrow_address


POOL_RENT = 2_000_000


class Market:
    """A settlement state plus the usual participants."""

    owner = "0x" + "0a" * 32
    buyer = "0x" + "0b" * 32
    seller = "0x" + "0c" * 32
    referral = "0x" + "0d" * 32
    asset = "0x" + "a1" * 32
    shared_program = "0x" + "5b" * 32
    pool_rent = POOL_RENT

    def __init__(self) -> None:
        self.state = SettlementState()
        self.config = SettlementConfig()
        self._uuid = 0

    def add_pool(
        self,
        *,
        spot_price: int = 1_000_000,
        curve_type: CurveKind = CurveKind.LINEAR,
        curve_delta: int = 10_000,
        buyside: int = 0,
        sell_units: int = 0,
        shared: bool = False,
        shared_balance: int = 0,
        shared_count: int = 0,
        **kwargs,
    ) -> Pool:
        self._uuid += 1
        shared_escrow = shared_escrow_address(self.owner) if shared else None
        pool = Pool(
            owner=self.owner,
            uuid=f"pool-{self._uuid}",
            spot_price=spot_price,
            curve_type=curve_type,
            curve_delta=curve_delta,
            sellside_asset_amount=sell_units,
            buyside_payment_amount=buyside,
            shared_escrow_account=shared_escrow,
            shared_escrow_count=shared_count,
            **kwargs,
        )
        self.state.add_pool(pool)
        self.state.currency.set(pool.address, NATIVE_MINT, POOL_RENT)
        self.state.currency.set(pool.buyside_escrow, pool.payment_mint, buyside)
        if shared:
            self.state.currency.set(shared_escrow, pool.payment_mint, shared_balance)
        if sell_units:
            position = Position(
                pool=pool.address,
                pool_owner=pool.owner,
                asset_id=self.asset,
                asset_amount=sell_units,
                cosigner_annotation=pool.cosigner_annotation,
            )
            self.state.positions.put(position)
            self.state.assets.deposit(pool.address, self.asset, sell_units)
            self.state.currency.set(position.address, NATIVE_MINT, self.config.position_rent)
        return pool

    def fund(self, account: str, amount: int, mint: str = NATIVE_MINT) -> None:
        self.state.currency.set(account, mint, amount)

    def give_asset(self, holder: str, units: int, asset: Optional[str] = None) -> None:
        self.state.assets.deposit(holder, asset or self.asset, units)

    def add_metadata(self, metadata: AssetMetadata) -> None:
        self.state.metadata.put(metadata)

    def pool(self, pool: Pool) -> Optional[Pool]:
        return self.state.pools.get(pool.address)

    def balance(self, account: str, mint: str = NATIVE_MINT) -> int:
        return self.state.currency.get(account, mint)

    def accounts(self, pool: Pool, payer: str, **kwargs) -> FulfillAccounts:
        kwargs.setdefault("asset_id", self.asset)
        kwargs.setdefault("cosigner", pool.cosigner)
        kwargs.setdefault("referral", pool.referral)
        kwargs.setdefault("payment_mint", pool.payment_mint)
        return FulfillAccounts(pool=pool.address, payer=payer, owner=pool.owner, **kwargs)

    def shared_aux(self, *creators: str) -> tuple:
        return (
            AuxAccount(AuxTag.SHARED_PROGRAM, self.shared_program),
            AuxAccount(AuxTag.SHARED_ESCROW, shared_escrow_address(self.owner)),
        ) + tuple(AuxAccount(AuxTag.CREATOR, c) for c in creators)

    def collaborators(self, **kwargs) -> Collaborators:
        kwargs.setdefault("shared", LedgerSharedLiquidity(program_id=self.shared_program))
        return Collaborators(**kwargs)


@pytest.fixture
def market() -> Market:
    return Market()
