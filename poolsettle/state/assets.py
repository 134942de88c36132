"""
Asset holdings and asset metadata.

Holdings are token accounts keyed by (holder, asset_id). Unlike currency
balances, a token account has an explicit open/closed lifecycle: it is opened
on first receipt (init-if-needed) and may only be closed at zero balance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from .balances import Address, Amount


AssetId = str  # 0x-prefixed 32-byte hex string (the asset's mint)

BPS_DENOM = 10_000


class AssetTable:
    """Token accounts: (holder, asset_id) -> amount, plus the set of open accounts."""

    def __init__(self) -> None:
        self._amounts: Dict[Tuple[Address, AssetId], Amount] = {}
        self._open: Set[Tuple[Address, AssetId]] = set()

    def get(self, holder: Address, asset_id: AssetId) -> Amount:
        return self._amounts.get((holder, asset_id), 0)

    def is_open(self, holder: Address, asset_id: AssetId) -> bool:
        return (holder, asset_id) in self._open

    def open_account(self, holder: Address, asset_id: AssetId) -> None:
        self._open.add((holder, asset_id))

    def close_account(self, holder: Address, asset_id: AssetId) -> None:
        """Close a token account. Raises ValueError unless its balance is zero."""
        if self.get(holder, asset_id) != 0:
            raise ValueError(f"token account {holder}/{asset_id} is not empty")
        self._open.discard((holder, asset_id))

    def deposit(self, holder: Address, asset_id: AssetId, amount: Amount) -> None:
        """Credit `amount` units, opening the account if needed."""
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        self._open.add((holder, asset_id))
        new_amount = self.get(holder, asset_id) + amount
        if new_amount:
            self._amounts[(holder, asset_id)] = new_amount

    def withdraw(self, holder: Address, asset_id: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        current = self.get(holder, asset_id)
        if current < amount:
            raise ValueError(f"insufficient asset balance: {current} < {amount}")
        if current == amount:
            self._amounts.pop((holder, asset_id), None)
        else:
            self._amounts[(holder, asset_id)] = current - amount

    def copy(self) -> "AssetTable":
        out = AssetTable()
        out._amounts = dict(self._amounts)
        out._open = set(self._open)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssetTable):
            return NotImplemented
        return self._amounts == other._amounts and self._open == other._open

    def __repr__(self) -> str:
        return f"AssetTable({len(self._amounts)} balances, {len(self._open)} open accounts)"


@dataclass(frozen=True)
class Creator:
    address: Address
    share: int  # percent, 0..100
    verified: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.share, int) or isinstance(self.share, bool):
            raise TypeError("share must be an int")
        if not (0 <= self.share <= 100):
            raise ValueError(f"creator share must be in [0, 100]: {self.share}")


@dataclass(frozen=True)
class DynamicRoyalty:
    """
    Price-dependent royalty multiplier.

    The multiplier moves linearly from `start_multiplier_bp` at `start_price`
    to `end_multiplier_bp` at `end_price` and is clamped outside that range.
    """

    start_price: int
    end_price: int
    start_multiplier_bp: int
    end_multiplier_bp: int

    def __post_init__(self) -> None:
        if self.start_price < 0 or self.end_price < self.start_price:
            raise ValueError("dynamic royalty prices must satisfy 0 <= start_price <= end_price")
        for name, v in (
            ("start_multiplier_bp", self.start_multiplier_bp),
            ("end_multiplier_bp", self.end_multiplier_bp),
        ):
            if not (0 <= v <= BPS_DENOM):
                raise ValueError(f"{name} must be in [0, {BPS_DENOM}]: {v}")

    def multiplier_bp(self, price: int) -> int:
        if price <= self.start_price:
            return self.start_multiplier_bp
        if price >= self.end_price:
            return self.end_multiplier_bp
        span = self.end_price - self.start_price
        offset = price - self.start_price
        delta = self.end_multiplier_bp - self.start_multiplier_bp
        return self.start_multiplier_bp + (delta * offset) // span


@dataclass(frozen=True)
class AssetMetadata:
    """
    Metadata the core reads for allowlist checks and creator royalties.

    Attributes:
        asset_id: The asset's mint
        creators: Ordered creator list (shares sum to 100 when non-empty)
        seller_fee_bp: Declared creator royalty in basis points
        collection: Collection key, if any
        collection_verified: Whether the collection membership is verified
        royalty_policy: Optional dynamic royalty policy
    """

    asset_id: AssetId
    creators: Tuple[Creator, ...] = ()
    seller_fee_bp: int = 0
    collection: Optional[Address] = None
    collection_verified: bool = False
    royalty_policy: Optional[DynamicRoyalty] = None

    def __post_init__(self) -> None:
        if not (0 <= self.seller_fee_bp <= BPS_DENOM):
            raise ValueError(f"seller_fee_bp must be in [0, {BPS_DENOM}]: {self.seller_fee_bp}")
        if self.creators:
            total = sum(c.share for c in self.creators)
            if total != 100:
                raise ValueError(f"creator shares must sum to 100, got {total}")

    def first_verified_creator(self) -> Optional[Address]:
        for creator in self.creators:
            if creator.verified:
                return creator.address
        return None


@dataclass
class MetadataStore:
    """Read-only lookup of asset metadata by asset id."""

    _by_asset: Dict[AssetId, AssetMetadata] = field(default_factory=dict)

    def put(self, metadata: AssetMetadata) -> None:
        self._by_asset[metadata.asset_id] = metadata

    def get(self, asset_id: AssetId) -> Optional[AssetMetadata]:
        return self._by_asset.get(asset_id)
