"""
Asset custody adapters.

The settlement protocol is written once against ``AssetCustody``; these
adapters cover the three custody schemes a pool can trade:

- ``TokenCustody``: plain token accounts.
- ``RestrictedTokenCustody``: tokens whose every transfer passes a transfer
  hook (extension tokens).
- ``RoyaltyEnforcedCustody``: single-unit assets under a royalty-enforcing
  scheme; creators are paid in full in both directions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import ErrorCode, LiquidityError, ValidationError
from ..state.assets import AssetId, AssetTable
from ..state.authority import Authority
from ..state.balances import Address, Amount


TransferHook = Callable[[Address, Address, AssetId, Amount], bool]


@dataclass(frozen=True)
class TokenCustody:
    royalty_enforced: bool = False

    def balance(self, assets: AssetTable, holder: Address, asset_id: AssetId) -> Amount:
        return assets.get(holder, asset_id)

    def transfer(
        self,
        assets: AssetTable,
        src: Address,
        dst: Address,
        asset_id: AssetId,
        amount: Amount,
        authority: Authority,
    ) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
            raise ValidationError(ErrorCode.INVALID_ASSET_AMOUNT, f"asset amount must be >= 1: {amount!r}")
        if not authority.authorizes(src):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"asset transfer from {src[:18]}... not authorized")
        held = assets.get(src, asset_id)
        if held < amount:
            raise LiquidityError(ErrorCode.NOT_ENOUGH_BALANCE, f"holder has {held} units, needs {amount}")
        assets.withdraw(src, asset_id, amount)
        assets.deposit(dst, asset_id, amount)

    def close(self, assets: AssetTable, holder: Address, asset_id: AssetId, authority: Authority) -> None:
        if not authority.authorizes(holder):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"close of {holder[:18]}... not authorized")
        if assets.get(holder, asset_id) != 0:
            raise LiquidityError(ErrorCode.NOT_EMPTY_ESCROW_ACCOUNT, "token account still holds units")
        assets.close_account(holder, asset_id)


@dataclass(frozen=True)
class RestrictedTokenCustody(TokenCustody):
    transfer_hook: Optional[TransferHook] = None

    def transfer(
        self,
        assets: AssetTable,
        src: Address,
        dst: Address,
        asset_id: AssetId,
        amount: Amount,
        authority: Authority,
    ) -> None:
        if self.transfer_hook is not None and not self.transfer_hook(src, dst, asset_id, amount):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"transfer hook rejected {asset_id[:18]}...")
        super().transfer(assets, src, dst, asset_id, amount, authority)


@dataclass(frozen=True)
class RoyaltyEnforcedCustody(TokenCustody):
    royalty_enforced: bool = True

    def transfer(
        self,
        assets: AssetTable,
        src: Address,
        dst: Address,
        asset_id: AssetId,
        amount: Amount,
        authority: Authority,
    ) -> None:
        if amount != 1:
            raise ValidationError(ErrorCode.INVALID_ASSET_AMOUNT, "royalty-enforced assets move one unit at a time")
        super().transfer(assets, src, dst, asset_id, amount, authority)
