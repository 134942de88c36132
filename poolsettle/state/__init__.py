"""
State management for pool settlement
"""

from .assets import AssetMetadata, AssetTable, Creator, DynamicRoyalty, MetadataStore
from .authority import DerivedAuthority, SignerAuthority
from .balances import NATIVE_MINT, BalanceTable
from .pools import Allowlist, AllowlistKind, CurveKind, Pool
from .positions import Position, PositionTable
from .store import SettlementState

__all__ = [
    "AssetMetadata",
    "AssetTable",
    "Creator",
    "DynamicRoyalty",
    "MetadataStore",
    "DerivedAuthority",
    "SignerAuthority",
    "NATIVE_MINT",
    "BalanceTable",
    "Allowlist",
    "AllowlistKind",
    "CurveKind",
    "Pool",
    "Position",
    "PositionTable",
    "SettlementState",
]
