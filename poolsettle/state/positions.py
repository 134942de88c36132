"""
Per-asset positions: units of one asset held in a pool's sell-side escrow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .authority import DerivedAuthority
from .balances import Address, Amount
from .pools import SELL_STATE_PREFIX, position_address


@dataclass(frozen=True)
class Position:
    """
    Attributes:
        pool: Pool address
        pool_owner: Copy of the pool owner (receives the rent on close)
        asset_id: Asset mint
        asset_amount: Units currently escrowed for sale
        cosigner_annotation: Copied from the pool at creation
    """
    pool: Address
    pool_owner: Address
    asset_id: str
    asset_amount: Amount = 0
    cosigner_annotation: str = "0x" + "00" * 32

    def __post_init__(self):
        if self.asset_amount < 0:
            raise ValueError(f"asset_amount must be non-negative: {self.asset_amount}")

    @property
    def address(self) -> Address:
        return position_address(self.pool, self.asset_id)


class PositionTable:
    """Open positions keyed by (pool, asset_id)."""

    def __init__(self) -> None:
        self._positions: Dict[Tuple[Address, str], Position] = {}

    def get(self, pool: Address, asset_id: str) -> Optional[Position]:
        return self._positions.get((pool, asset_id))

    def put(self, position: Position) -> None:
        self._positions[(position.pool, position.asset_id)] = position

    def remove(self, pool: Address, asset_id: str) -> None:
        self._positions.pop((pool, asset_id), None)

    def for_pool(self, pool: Address) -> Iterator[Position]:
        for (p, _), position in sorted(self._positions.items()):
            if p == pool:
                yield position

    def total_for_pool(self, pool: Address) -> Amount:
        return sum(position.asset_amount for position in self.for_pool(pool))

    def copy(self) -> "PositionTable":
        out = PositionTable()
        out._positions = dict(self._positions)
        return out

    def __len__(self) -> int:
        return len(self._positions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PositionTable):
            return NotImplemented
        return self._positions == other._positions

    def __repr__(self) -> str:
        return f"PositionTable({len(self._positions)} positions)"


def position_authority(pool: Address, asset_id: str) -> DerivedAuthority:
    """Authority of a position account (releases its rent on close)."""
    return DerivedAuthority(
        label=SELL_STATE_PREFIX,
        seeds=(pool, asset_id),
        address=position_address(pool, asset_id),
    )
