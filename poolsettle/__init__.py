"""
poolsettle: settlement core of two-sided NFT/SFT liquidity pools.
"""

from .config import SettlementConfig, load_settlement_config
from .errors import (
    ErrorCode,
    InvalidRequestedPriceError,
    InvariantError,
    LiquidityError,
    NumericOverflowError,
    SettlementError,
    ValidationError,
)
from .state import SettlementState
from .core import (
    Collaborators,
    FulfillAccounts,
    FulfillBuyArgs,
    FulfillResult,
    FulfillSellArgs,
    fulfill_buy,
    fulfill_buy_or_raise,
    fulfill_sell,
    fulfill_sell_or_raise,
)

__version__ = "0.1.0"

__all__ = [
    "SettlementConfig",
    "load_settlement_config",
    "ErrorCode",
    "InvalidRequestedPriceError",
    "InvariantError",
    "LiquidityError",
    "NumericOverflowError",
    "SettlementError",
    "ValidationError",
    "SettlementState",
    "Collaborators",
    "FulfillAccounts",
    "FulfillBuyArgs",
    "FulfillResult",
    "FulfillSellArgs",
    "fulfill_buy",
    "fulfill_buy_or_raise",
    "fulfill_sell",
    "fulfill_sell_or_raise",
]
