"""
Settlement configuration.

Amounts are integer base units of the native currency. Defaults match the
host chain's rent schedule: ``min_account_balance`` is the rent-exempt minimum
of a data-less account, ``position_rent`` the rent of one position record.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from .state.balances import U64_MAX


DEFAULT_MIN_ACCOUNT_BALANCE = 890_880
DEFAULT_POSITION_RENT = 3_285_120
DEFAULT_CHAIN_ID = "poolsettle-local"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SettlementConfig:
    min_account_balance: int = DEFAULT_MIN_ACCOUNT_BALANCE
    position_rent: int = DEFAULT_POSITION_RENT
    # Signing domain of co-signer fee authorizations.
    chain_id: str = DEFAULT_CHAIN_ID
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("min_account_balance", "position_rent"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= U64_MAX):
                raise ValueError(f"{name} out of range: {v}")
        if not isinstance(self.chain_id, str) or not self.chain_id:
            raise ValueError("chain_id must be a non-empty string")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "SettlementConfig":
        if not isinstance(obj, Mapping):
            raise TypeError("settlement config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(obj) - known)
        if unknown:
            raise ValueError(f"unknown settlement config keys: {unknown}")
        return cls(**dict(obj))


def load_settlement_config(path: Union[str, Path]) -> SettlementConfig:
    """
    Load a YAML settlement config.

    The file may hold the keys at top level or under a ``settlement:`` section.
    An empty file yields the defaults.
    """
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return SettlementConfig()
    if not isinstance(obj, Mapping):
        raise TypeError("settlement config YAML must be a mapping")
    if set(obj) == {"settlement"}:
        obj = obj["settlement"] or {}
    return SettlementConfig.from_mapping(obj)
