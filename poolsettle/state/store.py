"""
The complete state a fulfillment reads and writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .assets import AssetTable, MetadataStore
from .balances import Address, BalanceTable
from .pools import Pool
from .positions import PositionTable


@dataclass
class SettlementState:
    """
    Attributes:
        pools: Pool records keyed by pool address
        positions: Open positions
        currency: Currency ledger (escrows, rent, participants)
        assets: Token accounts
        metadata: Asset metadata (read-only during settlement)
    """
    pools: Dict[Address, Pool] = field(default_factory=dict)
    positions: PositionTable = field(default_factory=PositionTable)
    currency: BalanceTable = field(default_factory=BalanceTable)
    assets: AssetTable = field(default_factory=AssetTable)
    metadata: MetadataStore = field(default_factory=MetadataStore)

    def add_pool(self, pool: Pool) -> Pool:
        self.pools[pool.address] = pool
        return pool

    def copy(self) -> "SettlementState":
        """Scratch copy; metadata is shared because settlement never writes it."""
        return SettlementState(
            pools=dict(self.pools),
            positions=self.positions.copy(),
            currency=self.currency.copy(),
            assets=self.assets.copy(),
            metadata=self.metadata,
        )
