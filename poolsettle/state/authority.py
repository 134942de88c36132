"""
Transfer authorities.

Escrow accounts have no private key: they "own themselves" through the pool
they are derived from. A transfer out of such an account carries a
``DerivedAuthority``, which proves the source address is derived from the
pool's seeds; the currency/asset collaborators re-derive and compare before
moving anything. Ordinary accounts (fulfillers) authorize with a
``SignerAuthority``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from .balances import Address
from .canonical import derive_address


@dataclass(frozen=True)
class SignerAuthority:
    """The account's holder signed the enclosing fulfillment."""

    address: Address

    def authorizes(self, source: Address) -> bool:
        return self.address == source


@dataclass(frozen=True)
class DerivedAuthority:
    """Proof-of-derivation for a program-owned account."""

    label: str
    seeds: Tuple[str, ...]
    address: Address

    def authorizes(self, source: Address) -> bool:
        if self.address != source:
            return False
        return derive_address(self.label, *self.seeds) == self.address


Authority = Union[SignerAuthority, DerivedAuthority]
