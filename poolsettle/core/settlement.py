"""
Fulfillment settlement protocol.

Two entry points, named from the pool's side:

- ``fulfill_sell``: the pool sells; a buyer takes `asset_amount` units out of
  the sell-side escrow and pays at most `max_payment_amount`.
- ``fulfill_buy``: the pool buys; a seller delivers `asset_amount` units and
  receives at least `min_payment_amount` from the buy-side escrow.

Both are pure: the input ``SettlementState`` is never mutated. Each attempt
runs on a scratch copy of every table and either returns the settled copy or
the untouched input together with the error. ``*_or_raise`` variants raise
the typed ``SettlementError`` instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from ..config import SettlementConfig
from ..errors import (
    ErrorCode,
    InvalidRequestedPriceError,
    InvariantError,
    LiquidityError,
    SettlementError,
    ValidationError,
)
from ..integration.allowlist import MetadataAllowlistChecker
from ..integration.collaborators import (
    AllowlistChecker,
    AssetCustody,
    CosignerVerifier,
    CurrencyTransfer,
    RoyaltyPolicy,
    SharedLiquidity,
)
from ..integration.cosigner import BlsCosignerVerifier, cosign_payload
from ..integration.custody import TokenCustody
from ..integration.ledger import LedgerCurrencyTransfer
from ..integration.royalty import MetadataRoyaltyPolicy
from ..monitoring.logger import correlation_scope, get_logger
from ..state.assets import AssetId, AssetMetadata
from ..state.authority import SignerAuthority
from ..state.balances import NATIVE_MINT, Address, MintId
from ..state.pools import BPS_DENOM, Pool, escrow_authority, pool_authority
from ..state.store import SettlementState
from .accounts import AuxAccount, ParsedAux, parse_aux_accounts
from .checked import checked_add_u64, checked_sub_u64, require_u64, u64_from_i64
from .curves import Direction, price
from .escrow import (
    charge_position_rent,
    credit_position,
    debit_position,
    deposit_shared,
    sweep_shared_remainder,
    try_close_escrow,
    try_close_pool,
    try_close_position,
    withdraw_shared,
)
from .fees import (
    FeeBreakdown,
    assert_valid_fees_bp,
    compute_fulfill_buy_fees,
    compute_fulfill_sell_fees,
    lp_fee_bp,
)
from .invariants import check_pool
from .royalties import pay_creator_royalties


logger = get_logger(__name__)


@dataclass(frozen=True)
class FulfillAccounts:
    """
    Accounts named by a fulfillment.

    Attributes:
        pool: Pool address
        payer: The fulfiller (buyer in fulfill_sell, seller in fulfill_buy)
        owner: Must be the pool owner
        asset_id: Asset being traded
        cosigner: Must be the pool co-signer (None for pools without one)
        referral: Referral fee recipient
        payment_mint: Must be the pool's payment mint
        aux_accounts: Ordered auxiliary accounts (see ``core.accounts``)
    """
    pool: Address
    payer: Address
    owner: Address
    asset_id: AssetId
    cosigner: Optional[str] = None
    referral: Optional[Address] = None
    payment_mint: MintId = NATIVE_MINT
    aux_accounts: Tuple[AuxAccount, ...] = ()


@dataclass(frozen=True)
class FulfillSellArgs:
    asset_amount: int
    max_payment_amount: int
    maker_fee_bp: int = 0
    taker_fee_bp: int = 0
    allowlist_aux: Optional[Address] = None
    cosigner_signature: Optional[str] = None
    now: int = 0


@dataclass(frozen=True)
class FulfillBuyArgs:
    asset_amount: int
    min_payment_amount: int
    maker_fee_bp: int = 0
    taker_fee_bp: int = 0
    allowlist_aux: Optional[Address] = None
    cosigner_signature: Optional[str] = None
    now: int = 0


@dataclass(frozen=True)
class Collaborators:
    custody: AssetCustody = field(default_factory=TokenCustody)
    currency: CurrencyTransfer = field(default_factory=LedgerCurrencyTransfer)
    allowlist: AllowlistChecker = field(default_factory=MetadataAllowlistChecker)
    royalty: RoyaltyPolicy = field(default_factory=MetadataRoyaltyPolicy)
    cosigner: CosignerVerifier = field(default_factory=BlsCosignerVerifier)
    shared: Optional[SharedLiquidity] = None


@dataclass(frozen=True)
class FulfillmentEvent:
    kind: str
    pool: Address
    asset_id: AssetId
    asset_amount: int
    total_price: int
    next_price: int
    lp_fee: int
    maker_fee: int
    taker_fee: int
    referral_fee: int
    royalty_paid: int
    payment_amount: int
    position_closed: bool
    pool_closed: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FulfillResult:
    ok: bool
    state: SettlementState
    effects: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None

    @property
    def event(self) -> Optional[FulfillmentEvent]:
        return (self.effects or {}).get("event")


# ---------------------------------------------------------------------------
# Entry validation
# ---------------------------------------------------------------------------


def _load_pool(state: SettlementState, address: Address) -> Pool:
    pool = state.pools.get(address)
    if pool is None:
        raise ValidationError(ErrorCode.UNKNOWN_POOL, f"no pool at {address}")
    return pool


def _check_entry(pool: Pool, accounts: FulfillAccounts, now: int) -> None:
    if accounts.owner != pool.owner:
        raise ValidationError(ErrorCode.INVALID_OWNER, "owner does not match pool")
    if accounts.cosigner != pool.cosigner:
        raise ValidationError(ErrorCode.INVALID_COSIGNER, "cosigner does not match pool")
    if accounts.cosigner is not None and accounts.cosigner == accounts.owner:
        raise ValidationError(ErrorCode.INVALID_COSIGNER, "owner cannot co-sign")
    if pool.referral is not None and accounts.referral != pool.referral:
        raise ValidationError(ErrorCode.INVALID_REFERRAL, "referral does not match pool")
    if accounts.payment_mint != pool.payment_mint:
        raise ValidationError(ErrorCode.INVALID_PAYMENT_MINT, "payment mint does not match pool")
    if pool.is_expired(now):
        raise ValidationError(ErrorCode.EXPIRED, f"pool expired at {pool.expiry}")


def _check_cosign(
    pool: Pool,
    accounts: FulfillAccounts,
    *,
    direction: Direction,
    asset_amount: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    payment_bound: int,
    signature: Optional[str],
    verifier: CosignerVerifier,
    config: SettlementConfig,
) -> None:
    """A co-signed pool settles only what its co-signer signed; others take no maker/taker fees."""
    if pool.cosigner is None:
        if maker_fee_bp or taker_fee_bp:
            raise ValidationError(ErrorCode.INVALID_COSIGNER, "maker/taker fees need a pool co-signer")
        return
    payload = cosign_payload(
        chain_id=config.chain_id,
        pool=pool.address,
        direction=direction.value,
        asset_id=accounts.asset_id,
        asset_amount=asset_amount,
        maker_fee_bp=maker_fee_bp,
        taker_fee_bp=taker_fee_bp,
        payment_bound=payment_bound,
    )
    if not verifier.verify(pool.cosigner, payload, signature):
        raise ValidationError(ErrorCode.INVALID_COSIGNER, "co-signer signature rejected")


def _parse_aux(pool: Pool, accounts: FulfillAccounts, collaborators: Collaborators) -> ParsedAux:
    shared = collaborators.shared
    if pool.using_shared_escrow() and shared is None:
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "pool draws on shared liquidity but none is wired")
    return parse_aux_accounts(
        pool,
        accounts.aux_accounts,
        shared_program_id=shared.program_id if shared is not None else None,
    )


def _referral_destination(pool: Pool, accounts: FulfillAccounts, referral_fee: int) -> Optional[Address]:
    if referral_fee == 0:
        return None
    dest = accounts.referral if accounts.referral is not None else pool.referral
    if dest is None:
        raise ValidationError(ErrorCode.INVALID_REFERRAL, "referral fee owed but no referral account")
    return dest


def _validate_common(
    state: SettlementState,
    accounts: FulfillAccounts,
    *,
    direction: Direction,
    asset_amount: int,
    maker_fee_bp: int,
    taker_fee_bp: int,
    payment_bound: int,
    signature: Optional[str],
    allowlist_aux: Optional[Address],
    now: int,
    collaborators: Collaborators,
    config: SettlementConfig,
) -> Tuple[Pool, ParsedAux, AssetMetadata]:
    pool = _load_pool(state, accounts.pool)
    _check_entry(pool, accounts, now)
    if not isinstance(asset_amount, int) or isinstance(asset_amount, bool) or asset_amount < 1:
        raise ValidationError(ErrorCode.INVALID_ASSET_AMOUNT, f"asset_amount must be >= 1: {asset_amount!r}")
    assert_valid_fees_bp(maker_fee_bp, taker_fee_bp)
    require_u64(payment_bound, "payment bound")
    _check_cosign(
        pool,
        accounts,
        direction=direction,
        asset_amount=asset_amount,
        maker_fee_bp=maker_fee_bp,
        taker_fee_bp=taker_fee_bp,
        payment_bound=payment_bound,
        signature=signature,
        verifier=collaborators.cosigner,
        config=config,
    )
    aux = _parse_aux(pool, accounts, collaborators)
    metadata = collaborators.allowlist.check(pool.allowlists, accounts.asset_id, state.metadata, allowlist_aux)
    return pool, aux, metadata


# ---------------------------------------------------------------------------
# Settlement bodies (operate on scratch state, raise on any failure)
# ---------------------------------------------------------------------------


def _commit_pool(
    s: SettlementState,
    pool: Pool,
    collaborators: Collaborators,
    label: str,
) -> bool:
    pool = replace(pool, buyside_payment_amount=s.currency.get(pool.buyside_escrow, pool.payment_mint))
    s.pools[pool.address] = pool
    log_pool(label, pool)
    violations = check_pool(s, pool)
    if violations:
        raise InvariantError(violations)
    return try_close_pool(s.pools, s.currency, collaborators.currency, pool)


def _settle_sell(
    s: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillSellArgs,
    collaborators: Collaborators,
    config: SettlementConfig,
) -> Tuple[FeeBreakdown, FulfillmentEvent]:
    n = args.asset_amount
    pool, aux, metadata = _validate_common(
        s,
        accounts,
        direction=Direction.BUYER_BUYS,
        asset_amount=n,
        maker_fee_bp=args.maker_fee_bp,
        taker_fee_bp=args.taker_fee_bp,
        payment_bound=args.max_payment_amount,
        signature=args.cosigner_signature,
        allowlist_aux=args.allowlist_aux,
        now=args.now,
        collaborators=collaborators,
        config=config,
    )
    custody = collaborators.custody
    currency = collaborators.currency
    mint = pool.payment_mint
    payer = accounts.payer
    payer_authority = SignerAuthority(payer)

    held = custody.balance(s.assets, pool.address, accounts.asset_id)
    if n > pool.sellside_asset_amount or n > held:
        raise LiquidityError(
            ErrorCode.NOT_ENOUGH_BALANCE,
            f"pool escrows {held} of {accounts.asset_id}, asked for {n}",
        )
    total_price, next_price = price(pool, n, Direction.BUYER_BUYS)
    escrow_balance = s.currency.get(pool.buyside_escrow, mint)
    royalty_bp = collaborators.royalty.royalty_bp(total_price, metadata) if custody.royalty_enforced else 0
    fb = compute_fulfill_sell_fees(
        total_price,
        lp_fee_bp(pool, escrow_balance),
        args.maker_fee_bp,
        args.taker_fee_bp,
        royalty_bp,
        next_price=next_price,
    )
    referral_dest = _referral_destination(pool, accounts, fb.referral_fee)

    proceeds = u64_from_i64(fb.total_price - fb.maker_fee)
    if pool.reinvest_fulfill_sell and pool.using_shared_escrow():
        pool = deposit_shared(s.currency, collaborators.shared, pool, payer, proceeds, n)
    elif pool.reinvest_fulfill_sell:
        currency.transfer(s.currency, payer, pool.buyside_escrow, proceeds, mint, payer_authority)
    else:
        currency.transfer(s.currency, payer, pool.owner, proceeds, mint, payer_authority)

    custody.transfer(s.assets, pool.address, payer, accounts.asset_id, n, pool_authority(pool))
    if custody.balance(s.assets, pool.address, accounts.asset_id) == 0:
        custody.close(s.assets, pool.address, accounts.asset_id, pool_authority(pool))

    currency.transfer(s.currency, payer, pool.owner, fb.lp_fee, mint, payer_authority)
    if referral_dest is not None:
        currency.transfer(s.currency, payer, referral_dest, fb.referral_fee, mint, payer_authority)

    royalty_paid = pay_creator_royalties(
        s.currency,
        currency,
        metadata=metadata,
        creator_accounts=aux.creators,
        payer=payer,
        authority=payer_authority,
        royalty=fb.royalty,
        mint=mint,
        min_account_balance=config.min_account_balance,
    )

    payment_amount = require_u64(fb.total_price + fb.lp_fee + fb.taker_fee + royalty_paid, "payment amount")
    if payment_amount > args.max_payment_amount:
        raise InvalidRequestedPriceError(
            f"payment {payment_amount} exceeds max_payment_amount {args.max_payment_amount}"
        )

    pool = replace(
        pool,
        spot_price=next_price,
        sellside_asset_amount=checked_sub_u64(pool.sellside_asset_amount, n),
        lp_fee_earned=checked_add_u64(pool.lp_fee_earned, fb.lp_fee),
    )
    debit_position(s.positions, pool, accounts.asset_id, n)
    position_closed = try_close_position(s.positions, s.currency, currency, pool.address, accounts.asset_id)

    if pool.using_shared_escrow():
        sweep_shared_remainder(s.currency, currency, pool, config.min_account_balance)

    pool_closed = _commit_pool(s, pool, collaborators, "post_fulfill_sell")
    event = FulfillmentEvent(
        kind="fulfill_sell",
        pool=pool.address,
        asset_id=accounts.asset_id,
        asset_amount=n,
        total_price=fb.total_price,
        next_price=next_price,
        lp_fee=fb.lp_fee,
        maker_fee=fb.maker_fee,
        taker_fee=fb.taker_fee,
        referral_fee=fb.referral_fee,
        royalty_paid=royalty_paid,
        payment_amount=payment_amount,
        position_closed=position_closed,
        pool_closed=pool_closed,
    )
    return fb, event


def _settle_buy(
    s: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillBuyArgs,
    collaborators: Collaborators,
    config: SettlementConfig,
) -> Tuple[FeeBreakdown, FulfillmentEvent]:
    n = args.asset_amount
    pool, aux, metadata = _validate_common(
        s,
        accounts,
        direction=Direction.BUYER_SELLS,
        asset_amount=n,
        maker_fee_bp=args.maker_fee_bp,
        taker_fee_bp=args.taker_fee_bp,
        payment_bound=args.min_payment_amount,
        signature=args.cosigner_signature,
        allowlist_aux=args.allowlist_aux,
        now=args.now,
        collaborators=collaborators,
        config=config,
    )
    custody = collaborators.custody
    currency = collaborators.currency
    mint = pool.payment_mint
    payer = accounts.payer
    escrow = pool.buyside_escrow
    escrow_auth = escrow_authority(pool)

    held = custody.balance(s.assets, payer, accounts.asset_id)
    if n > held:
        raise LiquidityError(
            ErrorCode.NOT_ENOUGH_BALANCE,
            f"seller holds {held} of {accounts.asset_id}, offered {n}",
        )
    total_price, next_price = price(pool, n, Direction.BUYER_SELLS)
    royalty_bp = collaborators.royalty.royalty_bp(total_price, metadata)
    buyside_creator_bp = BPS_DENOM if custody.royalty_enforced else pool.buyside_creator_royalty_bp
    fb = compute_fulfill_buy_fees(
        total_price,
        lp_fee_bp(pool, s.currency.get(escrow, mint)),
        args.maker_fee_bp,
        args.taker_fee_bp,
        royalty_bp,
        buyside_creator_bp,
        next_price=next_price,
    )
    referral_dest = _referral_destination(pool, accounts, fb.referral_fee)

    if pool.using_shared_escrow():
        pool = withdraw_shared(
            s.currency,
            collaborators.shared,
            pool,
            u64_from_i64(fb.total_price + fb.maker_fee),
            n,
        )

    target = pool.address if pool.reinvest_fulfill_buy else pool.owner
    custody.transfer(s.assets, payer, target, accounts.asset_id, n, SignerAuthority(payer))
    if pool.reinvest_fulfill_buy:
        pool = replace(pool, sellside_asset_amount=checked_add_u64(pool.sellside_asset_amount, n))
        position, created = credit_position(s.positions, pool, accounts.asset_id, n)
        if created:
            charge_position_rent(s.currency, currency, payer, position, config.position_rent)
    if custody.balance(s.assets, payer, accounts.asset_id) == 0:
        custody.close(s.assets, payer, accounts.asset_id, SignerAuthority(payer))

    royalty_paid = pay_creator_royalties(
        s.currency,
        currency,
        metadata=metadata,
        creator_accounts=aux.creators,
        payer=escrow,
        authority=escrow_auth,
        royalty=fb.royalty,
        mint=mint,
        min_account_balance=config.min_account_balance,
    )

    payment_amount = require_u64(
        fb.total_price - fb.lp_fee - fb.taker_fee - royalty_paid,
        "payment amount",
    )
    if payment_amount < args.min_payment_amount:
        raise InvalidRequestedPriceError(
            f"payment {payment_amount} below min_payment_amount {args.min_payment_amount}"
        )

    currency.transfer(s.currency, escrow, payer, payment_amount, mint, escrow_auth)
    currency.transfer(s.currency, escrow, pool.owner, fb.lp_fee, mint, escrow_auth)
    if referral_dest is not None:
        currency.transfer(s.currency, escrow, referral_dest, fb.referral_fee, mint, escrow_auth)

    pool = replace(
        pool,
        spot_price=next_price,
        lp_fee_earned=checked_add_u64(pool.lp_fee_earned, fb.lp_fee),
    )

    if pool.using_shared_escrow():
        sweep_shared_remainder(s.currency, currency, pool, config.min_account_balance)
    else:
        try_close_escrow(s.currency, currency, pool, config.min_account_balance)

    pool_closed = _commit_pool(s, pool, collaborators, "post_fulfill_buy")
    event = FulfillmentEvent(
        kind="fulfill_buy",
        pool=pool.address,
        asset_id=accounts.asset_id,
        asset_amount=n,
        total_price=fb.total_price,
        next_price=next_price,
        lp_fee=fb.lp_fee,
        maker_fee=fb.maker_fee,
        taker_fee=fb.taker_fee,
        referral_fee=fb.referral_fee,
        royalty_paid=royalty_paid,
        payment_amount=payment_amount,
        position_closed=False,
        pool_closed=pool_closed,
    )
    return fb, event


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def log_pool(label: str, pool: Pool) -> None:
    logger.debug(
        label,
        extra={
            "pool": pool.address,
            "spot_price": pool.spot_price,
            "sellside_asset_amount": pool.sellside_asset_amount,
            "buyside_payment_amount": pool.buyside_payment_amount,
            "lp_fee_earned": pool.lp_fee_earned,
            "shared_escrow_count": pool.shared_escrow_count,
        },
    )


def _run(kind, settle, state, accounts, args, collaborators, config, *, raise_errors: bool) -> FulfillResult:
    collaborators = collaborators or Collaborators()
    config = config or SettlementConfig()
    with correlation_scope(f"{kind}:{accounts.pool[:18]}:{accounts.asset_id[:18]}:{args.now}"):
        scratch = state.copy()
        try:
            fb, event = settle(scratch, accounts, args, collaborators, config)
        except SettlementError as exc:
            logger.warning(
                "%s rejected",
                kind,
                extra={"pool": accounts.pool, "code": exc.code.value, "reason": str(exc)},
            )
            if raise_errors:
                raise
            return FulfillResult(ok=False, state=state, error=str(exc), code=exc.code)
        logger.info("%s settled", kind, extra=event.to_dict())
        return FulfillResult(ok=True, state=scratch, effects={"event": event, "fees": fb})


def fulfill_sell(
    state: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillSellArgs,
    *,
    collaborators: Optional[Collaborators] = None,
    config: Optional[SettlementConfig] = None,
) -> FulfillResult:
    """A buyer buys `args.asset_amount` units from the pool's sell side."""
    return _run("fulfill_sell", _settle_sell, state, accounts, args, collaborators, config, raise_errors=False)


def fulfill_buy(
    state: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillBuyArgs,
    *,
    collaborators: Optional[Collaborators] = None,
    config: Optional[SettlementConfig] = None,
) -> FulfillResult:
    """A seller sells `args.asset_amount` units into the pool's buy side."""
    return _run("fulfill_buy", _settle_buy, state, accounts, args, collaborators, config, raise_errors=False)


def fulfill_sell_or_raise(
    state: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillSellArgs,
    *,
    collaborators: Optional[Collaborators] = None,
    config: Optional[SettlementConfig] = None,
) -> FulfillResult:
    """Like ``fulfill_sell()`` but raises the typed ``SettlementError`` on rejection.

    Raises:
        ValidationError: parameters, accounts or authorization rejected
        NumericOverflowError: checked arithmetic left its range
        InvalidRequestedPriceError: payment breached `max_payment_amount`
        LiquidityError: an account could not cover a transfer
    """
    return _run("fulfill_sell", _settle_sell, state, accounts, args, collaborators, config, raise_errors=True)


def fulfill_buy_or_raise(
    state: SettlementState,
    accounts: FulfillAccounts,
    args: FulfillBuyArgs,
    *,
    collaborators: Optional[Collaborators] = None,
    config: Optional[SettlementConfig] = None,
) -> FulfillResult:
    """Like ``fulfill_buy()`` but raises the typed ``SettlementError`` on rejection."""
    return _run("fulfill_buy", _settle_buy, state, accounts, args, collaborators, config, raise_errors=True)
