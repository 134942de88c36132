"""
Contracts of the collaborators the settlement core calls out to.

Every call is synchronous and either completes or raises a ``SettlementError``;
the core never retries. Implementations mutate only the tables they are
handed, which are the settlement's scratch copies.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..state.assets import AssetId, AssetMetadata, AssetTable, DynamicRoyalty, MetadataStore
from ..state.authority import Authority
from ..state.balances import Address, Amount, BalanceTable, MintId
from ..state.pools import Allowlist


class AssetCustody(Protocol):
    """Moves asset units between token accounts under one custody scheme."""

    # Royalty-enforced schemes charge the full creator royalty in both directions.
    royalty_enforced: bool

    def balance(self, assets: AssetTable, holder: Address, asset_id: AssetId) -> Amount: ...

    def transfer(
        self,
        assets: AssetTable,
        src: Address,
        dst: Address,
        asset_id: AssetId,
        amount: Amount,
        authority: Authority,
    ) -> None: ...

    def close(self, assets: AssetTable, holder: Address, asset_id: AssetId, authority: Authority) -> None: ...


class CurrencyTransfer(Protocol):
    def transfer(
        self,
        ledger: BalanceTable,
        src: Address,
        dst: Address,
        amount: Amount,
        mint: MintId,
        authority: Authority,
    ) -> None: ...


class AllowlistChecker(Protocol):
    def check(
        self,
        rules: Sequence[Allowlist],
        asset_id: AssetId,
        metadata: MetadataStore,
        aux: Optional[Address],
    ) -> AssetMetadata: ...


class RoyaltyPolicy(Protocol):
    def royalty_bp(
        self,
        total_price: Amount,
        metadata: AssetMetadata,
        policy: Optional[DynamicRoyalty] = None,
    ) -> int: ...


class SharedLiquidity(Protocol):
    """External lending program that owns a pool owner's shared escrow."""

    program_id: Address

    def withdraw(
        self,
        ledger: BalanceTable,
        owner: Address,
        source: Address,
        dest: Address,
        amount: Amount,
        mint: MintId,
    ) -> None: ...

    def deposit(
        self,
        ledger: BalanceTable,
        owner: Address,
        source: Address,
        dest: Address,
        amount: Amount,
        mint: MintId,
        authority: Authority,
    ) -> None: ...


class CosignerVerifier(Protocol):
    def verify(self, cosigner: str, payload: bytes, signature: Optional[str]) -> bool: ...
