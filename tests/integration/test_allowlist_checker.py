from __future__ import annotations

import pytest

from poolsettle.errors import ErrorCode, ValidationError
from poolsettle.integration import MetadataAllowlistChecker
from poolsettle.state import Allowlist, AllowlistKind, AssetMetadata, Creator, MetadataStore
from poolsettle.state.pools import check_allowlists


ASSET = "0x" + "a1" * 32
OTHER = "0x" + "a2" * 32
CREATOR = "0x" + "c1" * 32
COLLECTION = "0x" + "cc" * 32


@pytest.fixture
def store() -> MetadataStore:
    s = MetadataStore()
    s.put(
        AssetMetadata(
            asset_id=ASSET,
            creators=(Creator("0x" + "c0" * 32, 50), Creator(CREATOR, 50, verified=True)),
            collection=COLLECTION,
            collection_verified=True,
        )
    )
    return s


def _check(rules, store, asset=ASSET, aux=None):
    return MetadataAllowlistChecker().check(check_allowlists(rules), asset, store, aux)


@pytest.mark.parametrize(
    "rule",
    [
        Allowlist(AllowlistKind.ANY),
        Allowlist(AllowlistKind.MINT, ASSET),
        Allowlist(AllowlistKind.FVCA, CREATOR),
        Allowlist(AllowlistKind.MCC, COLLECTION),
    ],
)
def test_matching_rule_returns_metadata(store, rule) -> None:
    assert _check((rule,), store).asset_id == ASSET


@pytest.mark.parametrize(
    "rule",
    [
        Allowlist(AllowlistKind.MINT, OTHER),
        Allowlist(AllowlistKind.FVCA, "0x" + "c0" * 32),
        Allowlist(AllowlistKind.MCC, "0x" + "dd" * 32),
    ],
)
def test_non_matching_rule(store, rule) -> None:
    with pytest.raises(ValidationError) as exc:
        _check((rule,), store)
    assert exc.value.code is ErrorCode.INVALID_ALLOWLISTS


def test_unverified_collection_does_not_match() -> None:
    s = MetadataStore()
    s.put(AssetMetadata(asset_id=ASSET, collection=COLLECTION))
    with pytest.raises(ValidationError):
        _check((Allowlist(AllowlistKind.MCC, COLLECTION),), s)


def test_asset_without_metadata_passes_mint_rule() -> None:
    meta = _check((Allowlist(AllowlistKind.MINT, OTHER),), MetadataStore(), asset=OTHER)
    assert meta == AssetMetadata(asset_id=OTHER)


def test_aux_selects_rule(store) -> None:
    rules = (Allowlist(AllowlistKind.MINT, OTHER), Allowlist(AllowlistKind.FVCA, CREATOR))
    assert _check(rules, store, aux=CREATOR).asset_id == ASSET
    with pytest.raises(ValidationError):
        _check(rules, store, aux=OTHER)


def test_rule_set_validation() -> None:
    with pytest.raises(ValidationError):
        check_allowlists(())
    with pytest.raises(ValidationError):
        check_allowlists((Allowlist(AllowlistKind.MINT),))
    with pytest.raises(ValidationError):
        check_allowlists(tuple(Allowlist(AllowlistKind.ANY) for _ in range(7)))
    padded = check_allowlists((Allowlist(AllowlistKind.ANY),))
    assert len(padded) == 6
    assert padded[1].kind is AllowlistKind.EMPTY
