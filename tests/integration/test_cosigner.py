# [TESTER] v1

from __future__ import annotations

from py_ecc.bls import G2Basic

from poolsettle.integration import BlsCosignerVerifier, cosign_payload, cosigner_pubkey, sign_cosign_payload


def _payload(**overrides) -> bytes:
    fields = {
        "chain_id": "poolsettle-local",
        "pool": "0x" + "11" * 32,
        "direction": "BUYER_BUYS",
        "asset_id": "0x" + "a1" * 32,
        "asset_amount": 1,
        "maker_fee_bp": 100,
        "taker_fee_bp": -25,
        "payment_bound": 1_015_050,
    }
    fields.update(overrides)
    return cosign_payload(**fields)


def test_payload_is_canonical() -> None:
    assert _payload() == _payload()
    assert b" " not in _payload()
    assert _payload(maker_fee_bp=101) != _payload()


def test_signature_roundtrip_bls_g2basic() -> None:
    # Deterministic keypair from fixed seed.
    sk = G2Basic.KeyGen(b"\x01" * 32)
    pubkey = cosigner_pubkey(sk)
    signature = sign_cosign_payload(sk, _payload())

    verifier = BlsCosignerVerifier()
    assert verifier.verify(pubkey, _payload(), signature)
    assert not verifier.verify(pubkey, _payload(taker_fee_bp=0), signature)
    assert not verifier.verify(pubkey, _payload(chain_id="other"), signature)


def test_malformed_inputs_are_rejections() -> None:
    verifier = BlsCosignerVerifier()
    assert not verifier.verify("0x" + "cc" * 48, _payload(), None)
    assert not verifier.verify("0x" + "cc" * 48, _payload(), "0x" + "00" * 96)
    assert not verifier.verify("not-hex", _payload(), "0x" + "00" * 96)
