"""
Co-signer authorization of maker/taker fee rates (BLS12-381).

A pool with a co-signer only settles non-zero maker/taker rates the co-signer
signed. The signed message is

    sha256(domain_sep("pool_cosign") || canonical_json(payload))

where the payload binds the chain, pool, direction, asset, unit count, both
fee rates and the caller's payment bound.
"""

from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional

from py_ecc.bls import G2Basic

from ..state.canonical import canonical_json_bytes, domain_sep_bytes, hex_to_bytes_fixed


COSIGN_DOMAIN = "pool_cosign"


def cosign_payload(
    *,
    chain_id: str,
    pool: str,
    direction: str,
    asset_id: str,
    asset_amount: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    payment_bound: int,
) -> bytes:
    body: Dict[str, Any] = {
        "chain_id": chain_id,
        "pool": pool,
        "direction": direction,
        "asset_id": asset_id,
        "asset_amount": asset_amount,
        "maker_fee_bp": maker_fee_bp,
        "taker_fee_bp": taker_fee_bp,
        "payment_bound": payment_bound,
    }
    return canonical_json_bytes(body)


def _message_hash(payload: bytes) -> bytes:
    return hashlib.sha256(domain_sep_bytes(COSIGN_DOMAIN) + payload).digest()


def cosigner_pubkey(private_key: int) -> str:
    return "0x" + bytes(G2Basic.SkToPk(private_key)).hex()


def sign_cosign_payload(private_key: int, payload: bytes) -> str:
    """Signature a co-signer attaches to a fulfillment (0x-prefixed, 96 bytes)."""
    return "0x" + bytes(G2Basic.Sign(private_key, _message_hash(payload))).hex()


class BlsCosignerVerifier:
    def verify(self, cosigner: str, payload: bytes, signature: Optional[str]) -> bool:
        if signature is None:
            return False
        try:
            pubkey_bytes = hex_to_bytes_fixed(cosigner, nbytes=48, name="cosigner")
            sig_bytes = hex_to_bytes_fixed(signature, nbytes=96, name="signature")
            return bool(G2Basic.Verify(pubkey_bytes, _message_hash(payload), sig_bytes))
        except Exception:
            # Malformed keys and off-curve points are rejections, not faults.
            return False
