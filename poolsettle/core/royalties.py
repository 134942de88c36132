"""
Creator royalty distribution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ..errors import ErrorCode, ValidationError
from ..state.assets import AssetMetadata
from ..state.authority import Authority
from ..state.balances import Address, Amount, BalanceTable, MintId
from .checked import checked_add_u64

if TYPE_CHECKING:
    from ..integration.collaborators import CurrencyTransfer


def pay_creator_royalties(
    ledger: BalanceTable,
    currency: "CurrencyTransfer",
    *,
    metadata: AssetMetadata,
    creator_accounts: Sequence[Address],
    payer: Address,
    authority: Authority,
    royalty: Amount,
    mint: MintId,
    min_account_balance: Amount,
) -> Amount:
    """
    Split `royalty` across the asset's creators and pay it from `payer`.

    Creators are paid in descending share order (ties keep metadata order);
    the last one receives whatever the earlier shares left, so the split never
    exceeds `royalty`. A creator whose balance would still sit below
    `min_account_balance` after the payment is skipped. Returns the amount
    actually paid.

    Raises:
        ValidationError(INVALID_CREATOR_ADDRESS): `creator_accounts` is not the
            metadata's creator list
    """
    creators = metadata.creators
    if royalty == 0 or not creators:
        return 0
    if tuple(creator_accounts) != tuple(c.address for c in creators):
        raise ValidationError(ErrorCode.INVALID_CREATOR_ADDRESS, "creator accounts do not match asset metadata")

    ordered = sorted(creators, key=lambda c: -c.share)
    allocated = 0
    paid = 0
    for i, creator in enumerate(ordered):
        if i == len(ordered) - 1:
            fee = royalty - allocated
        else:
            fee = royalty * creator.share // 100
        allocated += fee
        if fee == 0:
            continue
        if ledger.get(creator.address, mint) + fee < min_account_balance:
            continue
        currency.transfer(ledger, payer, creator.address, fee, mint, authority)
        paid = checked_add_u64(paid, fee)
    return paid
