"""Royalty-rate policies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.fees import metadata_royalty_bp
from ..errors import ErrorCode, ValidationError
from ..state.assets import AssetMetadata, DynamicRoyalty
from ..state.pools import BPS_DENOM


class MetadataRoyaltyPolicy:
    """The asset's declared royalty, scaled by its dynamic policy if any."""

    def royalty_bp(
        self,
        total_price: int,
        metadata: AssetMetadata,
        policy: Optional[DynamicRoyalty] = None,
    ) -> int:
        return metadata_royalty_bp(total_price, metadata, policy)


@dataclass(frozen=True)
class CappedRoyaltyPolicy:
    """Declared royalty, capped at `max_bp`."""

    max_bp: int

    def __post_init__(self) -> None:
        if not (0 <= self.max_bp <= BPS_DENOM):
            raise ValidationError(ErrorCode.INVALID_BP, f"royalty cap out of range: {self.max_bp}")

    def royalty_bp(
        self,
        total_price: int,
        metadata: AssetMetadata,
        policy: Optional[DynamicRoyalty] = None,
    ) -> int:
        return min(metadata_royalty_bp(total_price, metadata, policy), self.max_bp)
