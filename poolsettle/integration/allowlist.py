"""
Allowlist membership checks against asset metadata.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..errors import ErrorCode, ValidationError
from ..state.assets import AssetId, AssetMetadata, MetadataStore
from ..state.balances import Address
from ..state.pools import Allowlist, AllowlistKind


def rule_matches(rule: Allowlist, asset_id: AssetId, metadata: Optional[AssetMetadata]) -> bool:
    if rule.kind == AllowlistKind.ANY:
        return True
    if rule.kind == AllowlistKind.MINT:
        return rule.value == asset_id
    if metadata is None:
        return False
    if rule.kind == AllowlistKind.FVCA:
        return metadata.first_verified_creator() == rule.value
    if rule.kind == AllowlistKind.MCC:
        return metadata.collection_verified and metadata.collection == rule.value
    return False


class MetadataAllowlistChecker:
    """
    Accepts an asset when any non-empty rule matches.

    `aux`, when given, names the rule value the caller proves membership
    against; only rules carrying that value are consulted. Assets without
    metadata can only pass ANY and MINT rules and settle with empty metadata
    (no creators, no royalty).
    """

    def check(
        self,
        rules: Sequence[Allowlist],
        asset_id: AssetId,
        metadata: MetadataStore,
        aux: Optional[Address],
    ) -> AssetMetadata:
        meta = metadata.get(asset_id)
        for rule in rules:
            if rule.kind == AllowlistKind.EMPTY:
                continue
            if aux is not None and rule.value != aux:
                continue
            if rule_matches(rule, asset_id, meta):
                return meta if meta is not None else AssetMetadata(asset_id=asset_id)
        raise ValidationError(ErrorCode.INVALID_ALLOWLISTS, f"asset {asset_id[:18]}... not allowlisted")
