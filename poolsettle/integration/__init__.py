"""
Collaborator contracts and in-memory adapters for the settlement core.
"""

from .allowlist import MetadataAllowlistChecker
from .collaborators import (
    AllowlistChecker,
    AssetCustody,
    CosignerVerifier,
    CurrencyTransfer,
    RoyaltyPolicy,
    SharedLiquidity,
)
from .cosigner import BlsCosignerVerifier, cosign_payload, cosigner_pubkey, sign_cosign_payload
from .custody import RestrictedTokenCustody, RoyaltyEnforcedCustody, TokenCustody
from .ledger import LedgerCurrencyTransfer, LedgerSharedLiquidity
from .royalty import CappedRoyaltyPolicy, MetadataRoyaltyPolicy

__all__ = [
    "AllowlistChecker",
    "AssetCustody",
    "CosignerVerifier",
    "CurrencyTransfer",
    "RoyaltyPolicy",
    "SharedLiquidity",
    "MetadataAllowlistChecker",
    "BlsCosignerVerifier",
    "cosign_payload",
    "cosigner_pubkey",
    "sign_cosign_payload",
    "RestrictedTokenCustody",
    "RoyaltyEnforcedCustody",
    "TokenCustody",
    "LedgerCurrencyTransfer",
    "LedgerSharedLiquidity",
    "CappedRoyaltyPolicy",
    "MetadataRoyaltyPolicy",
]
