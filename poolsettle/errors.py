"""Typed errors raised by the settlement core.

Every failure carries an ``ErrorCode``. The exception class tells the caller
which phase rejected the fulfillment:

- ``ValidationError``: bad parameters or authorization, raised before any
  state change.
- ``NumericOverflowError``: a checked u64/i64 operation left its range.
- ``InvalidRequestedPriceError``: the slippage bound was breached after the
  full fee computation.
- ``LiquidityError``: an escrow or account cannot cover a transfer.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorCode(Enum):
    INVALID_LP_FEE = "InvalidLPFee"
    INVALID_ALLOWLISTS = "InvalidAllowLists"
    INVALID_BP = "InvalidBP"
    INVALID_CURVE_TYPE = "InvalidCurveType"
    INVALID_CURVE_DELTA = "InvalidCurveDelta"
    INVALID_COSIGNER = "InvalidCosigner"
    INVALID_PAYMENT_MINT = "InvalidPaymentMint"
    INVALID_OWNER = "InvalidOwner"
    NUMERIC_OVERFLOW = "NumericOverflow"
    INVALID_REQUESTED_PRICE = "InvalidRequestedPrice"
    NOT_EMPTY_ESCROW_ACCOUNT = "NotEmptyEscrowAccount"
    NOT_EMPTY_SELL_SIDE_ORDERS_COUNT = "NotEmptySellSideOrdersCount"
    INVALID_REFERRAL = "InvalidReferral"
    EXPIRED = "Expired"
    INVALID_CREATOR_ADDRESS = "InvalidCreatorAddress"
    NOT_ENOUGH_BALANCE = "NotEnoughBalance"
    INVALID_ASSET_AMOUNT = "InvalidAssetAmount"
    INVALID_ACCOUNTS = "InvalidAccounts"
    UNKNOWN_POOL = "UnknownPool"
    INVARIANT_VIOLATION = "InvariantViolation"


class SettlementError(Exception):
    """Base class; ``code`` identifies the failure."""

    def __init__(self, code: ErrorCode, message: str | None = None) -> None:
        self.code = code
        super().__init__(f"{code.value}: {message}" if message else code.value)


class ValidationError(SettlementError):
    """Raised when parameters, accounts or authorization are invalid."""


class NumericOverflowError(SettlementError):
    """Raised when checked arithmetic leaves the u64/i64 domain."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(ErrorCode.NUMERIC_OVERFLOW, message)


class InvalidRequestedPriceError(SettlementError):
    """Raised when the settled payment breaches the caller's bound."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(ErrorCode.INVALID_REQUESTED_PRICE, message)


class LiquidityError(SettlementError):
    """Raised when a balance cannot cover a transfer or an account cannot close."""


class InvariantError(SettlementError):
    """Raised when a settled state breaks a pool invariant; the attempt is discarded."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(ErrorCode.INVARIANT_VIOLATION, ",".join(self.violations))


_LIQUIDITY_CODES = frozenset({
    ErrorCode.NOT_ENOUGH_BALANCE,
    ErrorCode.NOT_EMPTY_ESCROW_ACCOUNT,
    ErrorCode.NOT_EMPTY_SELL_SIDE_ORDERS_COUNT,
})


def error_for(code: ErrorCode, message: str | None = None) -> SettlementError:
    """Build the exception class matching ``code``."""
    if code is ErrorCode.NUMERIC_OVERFLOW:
        return NumericOverflowError(message)
    if code is ErrorCode.INVALID_REQUESTED_PRICE:
        return InvalidRequestedPriceError(message)
    if code in _LIQUIDITY_CODES:
        return LiquidityError(code, message)
    return ValidationError(code, message)
