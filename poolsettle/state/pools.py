"""
Pool state for two-sided NFT liquidity pools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..errors import ErrorCode, NumericOverflowError, ValidationError
from .authority import DerivedAuthority
from .balances import NATIVE_MINT, U64_MAX, Address, Amount, MintId
from .canonical import canonical_hex_fixed_allow_0x, derive_address


BPS_DENOM = 10_000
ALLOWLIST_MAX_LEN = 6
MAX_EXP_CURVE_DELTA = 10_000

ZERO_ANNOTATION = "0x" + "00" * 32

POOL_PREFIX = "mmm_pool"
BUYSIDE_ESCROW_PREFIX = "mmm_buyside_sol_escrow_account"
SELL_STATE_PREFIX = "mmm_sell_state"
SHARED_ESCROW_PREFIX = "m2_buyer_escrow"


class CurveKind(Enum):
    """Pricing curve family."""
    LINEAR = "LINEAR"
    EXPONENTIAL = "EXPONENTIAL"


class AllowlistKind(Enum):
    EMPTY = "EMPTY"
    FVCA = "FVCA"  # first verified creator address
    MINT = "MINT"  # a single asset
    MCC = "MCC"  # verified collection
    ANY = "ANY"


@dataclass(frozen=True)
class Allowlist:
    kind: AllowlistKind
    value: Optional[Address] = None

    def valid(self) -> bool:
        if self.kind in (AllowlistKind.EMPTY, AllowlistKind.ANY):
            return self.value is None
        return isinstance(self.value, str) and bool(self.value)


def empty_allowlists(n: int = ALLOWLIST_MAX_LEN) -> Tuple[Allowlist, ...]:
    return tuple(Allowlist(AllowlistKind.EMPTY) for _ in range(n))


def check_allowlists(allowlists: Tuple[Allowlist, ...]) -> Tuple[Allowlist, ...]:
    """
    Validate and pad an allowlist rule set to ALLOWLIST_MAX_LEN entries.

    Raises:
        ValidationError(INVALID_ALLOWLISTS): too many rules, a malformed rule,
            or no non-empty rule at all.
    """
    rules = tuple(allowlists)
    if len(rules) > ALLOWLIST_MAX_LEN:
        raise ValidationError(ErrorCode.INVALID_ALLOWLISTS, f"at most {ALLOWLIST_MAX_LEN} rules")
    for rule in rules:
        if not isinstance(rule, Allowlist) or not rule.valid():
            raise ValidationError(ErrorCode.INVALID_ALLOWLISTS, f"malformed rule: {rule!r}")
    if all(rule.kind == AllowlistKind.EMPTY for rule in rules):
        raise ValidationError(ErrorCode.INVALID_ALLOWLISTS, "no allowlist rule set")
    return rules + empty_allowlists(ALLOWLIST_MAX_LEN - len(rules))


def pool_address(owner: Address, uuid: str) -> Address:
    """pool = H(domain("mmm_pool") || owner || uuid)"""
    return derive_address(POOL_PREFIX, owner, uuid)


def buyside_escrow_address(pool: Address) -> Address:
    return derive_address(BUYSIDE_ESCROW_PREFIX, pool)


def position_address(pool: Address, asset_id: str) -> Address:
    return derive_address(SELL_STATE_PREFIX, pool, asset_id)


def shared_escrow_address(owner: Address) -> Address:
    """Shared-liquidity escrow of `owner`, held by the external lending program."""
    return derive_address(SHARED_ESCROW_PREFIX, owner)


def _check_bp(name: str, value: int, code: ErrorCode) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= BPS_DENOM):
        raise ValidationError(code, f"{name} must be in [0, {BPS_DENOM}]: {value!r}")


def _check_u64(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= U64_MAX):
        raise NumericOverflowError(f"{name} must be a u64: {value!r}")


@dataclass(frozen=True)
class Pool:
    """
    A liquidity position owned by one holder.

    Attributes:
        owner: Pool owner address
        uuid: Per-pool unique token (with owner, seeds the pool address)
        spot_price: Current marginal price in payment-mint units
        curve_type: LINEAR or EXPONENTIAL
        curve_delta: Linear step in payment units, or exponential step in bp
        lp_fee_bp: Liquidity-provider fee rate
        referral: Referral recipient, if any
        cosigner: Co-signer public key (BLS12-381, hex) authorizing maker/taker rates
        cosigner_annotation: Opaque 32-byte annotation copied onto positions
        expiry: Unix timestamp after which fulfillments are rejected (0 = never)
        reinvest_fulfill_buy: Assets bought by the pool refill its sell side
        reinvest_fulfill_sell: Proceeds of sales refill its buy side
        buyside_creator_royalty_bp: Share of the declared royalty paid when the pool buys
        allowlists: Membership rules (padded to ALLOWLIST_MAX_LEN)
        payment_mint: Currency the pool trades in
        sellside_asset_amount: Units held in sell-side escrow
        buyside_payment_amount: Mirror of the currency escrow balance
        lp_fee_earned: Cumulative lp fees
        shared_escrow_account: External liquidity account, when linked
        shared_escrow_count: Units the external liquidity still covers
    """
    owner: Address
    uuid: str
    spot_price: Amount
    curve_type: CurveKind
    curve_delta: int
    lp_fee_bp: int = 0
    referral: Optional[Address] = None
    cosigner: Optional[str] = None
    cosigner_annotation: str = ZERO_ANNOTATION
    expiry: int = 0
    reinvest_fulfill_buy: bool = False
    reinvest_fulfill_sell: bool = False
    buyside_creator_royalty_bp: int = 0
    allowlists: Tuple[Allowlist, ...] = field(
        default_factory=lambda: (Allowlist(AllowlistKind.ANY),)
    )
    payment_mint: MintId = NATIVE_MINT
    sellside_asset_amount: Amount = 0
    buyside_payment_amount: Amount = 0
    lp_fee_earned: Amount = 0
    shared_escrow_account: Optional[Address] = None
    shared_escrow_count: Amount = 0

    def __post_init__(self):
        """Validate pool invariants (fail-closed)."""
        if not isinstance(self.curve_type, CurveKind):
            raise ValidationError(ErrorCode.INVALID_CURVE_TYPE, f"unsupported curve: {self.curve_type!r}")
        if not isinstance(self.curve_delta, int) or isinstance(self.curve_delta, bool) or self.curve_delta < 0:
            raise ValidationError(ErrorCode.INVALID_CURVE_DELTA, f"curve_delta must be >= 0: {self.curve_delta!r}")
        if self.curve_type == CurveKind.EXPONENTIAL and self.curve_delta > MAX_EXP_CURVE_DELTA:
            raise ValidationError(
                ErrorCode.INVALID_CURVE_DELTA,
                f"exponential curve_delta must be <= {MAX_EXP_CURVE_DELTA} bp: {self.curve_delta}",
            )
        _check_u64("curve_delta", self.curve_delta)
        _check_bp("lp_fee_bp", self.lp_fee_bp, ErrorCode.INVALID_LP_FEE)
        _check_bp("buyside_creator_royalty_bp", self.buyside_creator_royalty_bp, ErrorCode.INVALID_BP)

        if self.cosigner is not None and self.cosigner == self.owner:
            raise ValidationError(ErrorCode.INVALID_COSIGNER, "owner cannot be its own cosigner")
        try:
            annotation = canonical_hex_fixed_allow_0x(self.cosigner_annotation, nbytes=32, name="cosigner_annotation")
        except (TypeError, ValueError) as exc:
            raise ValidationError(ErrorCode.INVALID_COSIGNER, str(exc)) from exc
        object.__setattr__(self, "cosigner_annotation", annotation)
        object.__setattr__(self, "allowlists", check_allowlists(self.allowlists))

        for name in (
            "spot_price",
            "expiry",
            "sellside_asset_amount",
            "buyside_payment_amount",
            "lp_fee_earned",
            "shared_escrow_count",
        ):
            _check_u64(name, getattr(self, name))

        if self.shared_escrow_account is None and self.shared_escrow_count != 0:
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared_escrow_count without shared escrow")

    @property
    def address(self) -> Address:
        return pool_address(self.owner, self.uuid)

    @property
    def buyside_escrow(self) -> Address:
        return buyside_escrow_address(self.address)

    def using_shared_escrow(self) -> bool:
        return self.shared_escrow_account is not None

    def is_expired(self, now: int) -> bool:
        return self.expiry != 0 and self.expiry <= now

    def __repr__(self) -> str:
        return (
            f"Pool(address={self.address[:18]}..., spot={self.spot_price}, "
            f"curve={self.curve_type.value}/{self.curve_delta}, "
            f"sellside={self.sellside_asset_amount}, buyside={self.buyside_payment_amount})"
        )


def pool_authority(pool: Pool) -> DerivedAuthority:
    """Authority of the pool account itself (signs sell-side escrow transfers)."""
    return DerivedAuthority(label=POOL_PREFIX, seeds=(pool.owner, pool.uuid), address=pool.address)


def escrow_authority(pool: Pool) -> DerivedAuthority:
    """Authority of the pool's buy-side currency escrow."""
    return DerivedAuthority(
        label=BUYSIDE_ESCROW_PREFIX,
        seeds=(pool.address,),
        address=pool.buyside_escrow,
    )
