from __future__ import annotations

import pytest

from poolsettle import SettlementConfig, load_settlement_config


def test_defaults() -> None:
    config = SettlementConfig()
    assert config.min_account_balance == 890_880
    assert config.position_rent == 3_285_120
    assert config.log_level == "INFO"


def test_load_top_level_keys(tmp_path) -> None:
    path = tmp_path / "settlement.yaml"
    path.write_text("min_account_balance: 0\nchain_id: testnet\nlog_level: debug\n", encoding="utf-8")
    config = load_settlement_config(path)
    assert config == SettlementConfig(min_account_balance=0, chain_id="testnet", log_level="DEBUG")


def test_load_section(tmp_path) -> None:
    path = tmp_path / "settlement.yaml"
    path.write_text("settlement:\n  position_rent: 1000\n", encoding="utf-8")
    assert load_settlement_config(path).position_rent == 1000


def test_empty_file_gives_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settlement_config(path) == SettlementConfig()


@pytest.mark.parametrize(
    "text,exc",
    [
        ("min_account_balance: -1\n", ValueError),
        ("position_rent: '5'\n", TypeError),
        ("log_level: LOUD\n", ValueError),
        ("unknown_key: 1\n", ValueError),
        ("- 1\n- 2\n", TypeError),
    ],
)
def test_invalid_files(tmp_path, text, exc) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(exc):
        load_settlement_config(path)
