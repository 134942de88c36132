"""
Currency ledger: (account, mint) -> amount.

Escrow accounts, pool accounts (rent), position accounts (rent), owners,
fulfillers, referrals and creators all hold their currency here. An account
with a zero balance is indistinguishable from a closed one.
"""

from typing import Dict, Tuple


# Type aliases
Address = str  # 0x-prefixed 32-byte hex string
MintId = str  # payment mint identifier
Amount = int  # Non-negative integer, u64 range enforced by the core

U64_MAX = (1 << 64) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

# Native currency mint (the default payment mint of a pool)
NATIVE_MINT = "0x" + "00" * 32


class BalanceTable:
    """
    Deterministic balance table mapping (account, mint) -> amount.

    Zero balances are dropped to keep the table sparse; iteration order is
    never relied upon, callers sort keys when they need an order.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Address, MintId], Amount] = {}

    def get(self, account: Address, mint: MintId = NATIVE_MINT) -> Amount:
        """Get balance for (account, mint). Returns 0 if not found."""
        return self._balances.get((account, mint), 0)

    def set(self, account: Address, mint: MintId, amount: Amount) -> None:
        """
        Set balance for (account, mint).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, mint), None)
        else:
            self._balances[(account, mint)] = amount

    def add(self, account: Address, mint: MintId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, mint)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, mint, new_balance)

    def subtract(self, account: Address, mint: MintId, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, mint, -delta)

    def move(self, src: Address, dst: Address, mint: MintId, amount: Amount) -> None:
        """Move `amount` from `src` to `dst`; both sides change or neither does."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self.subtract(src, mint, amount)
        self.add(dst, mint, amount)

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def get_all_balances(self) -> Dict[Tuple[Address, MintId], Amount]:
        return dict(self._balances)

    def total(self, mint: MintId = NATIVE_MINT) -> Amount:
        """Sum of all balances in `mint` (conservation checks in tests)."""
        return sum(amount for (_, m), amount in self._balances.items() if m == mint)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceTable):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
