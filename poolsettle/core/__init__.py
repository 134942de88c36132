"""
Core settlement algorithms
"""

from .curves import Direction, price, total_price_and_next_price
from .fees import (
    FeeBreakdown,
    compute_fulfill_buy_fees,
    compute_fulfill_sell_fees,
    fees,
    lp_fee_bp,
)
from .escrow import PoolStatus, PositionStatus, pool_status, position_status
from .accounts import AuxAccount, AuxTag
from .invariants import check_all
from .settlement import (
    Collaborators,
    FulfillAccounts,
    FulfillBuyArgs,
    FulfillmentEvent,
    FulfillResult,
    FulfillSellArgs,
    fulfill_buy,
    fulfill_buy_or_raise,
    fulfill_sell,
    fulfill_sell_or_raise,
)

__all__ = [
    "Direction",
    "price",
    "total_price_and_next_price",
    "FeeBreakdown",
    "compute_fulfill_buy_fees",
    "compute_fulfill_sell_fees",
    "fees",
    "lp_fee_bp",
    "PoolStatus",
    "PositionStatus",
    "pool_status",
    "position_status",
    "AuxAccount",
    "AuxTag",
    "check_all",
    "Collaborators",
    "FulfillAccounts",
    "FulfillBuyArgs",
    "FulfillmentEvent",
    "FulfillResult",
    "FulfillSellArgs",
    "fulfill_buy",
    "fulfill_buy_or_raise",
    "fulfill_sell",
    "fulfill_sell_or_raise",
]
