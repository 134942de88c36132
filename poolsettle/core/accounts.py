"""
Auxiliary account list of a fulfillment.

The caller passes an ordered, tagged list whose schema depends on the pool:

- pool linked to shared liquidity: ``[SHARED_PROGRAM, SHARED_ESCROW, CREATOR...]``
- otherwise: ``[CREATOR...]``

The list is validated by length and tag before any entry is used.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from ..errors import ErrorCode, ValidationError
from ..state.balances import Address
from ..state.pools import Pool, shared_escrow_address


class AuxTag(Enum):
    SHARED_PROGRAM = "SHARED_PROGRAM"
    SHARED_ESCROW = "SHARED_ESCROW"
    CREATOR = "CREATOR"


@dataclass(frozen=True)
class AuxAccount:
    tag: AuxTag
    address: Address


@dataclass(frozen=True)
class ParsedAux:
    shared_program: Optional[Address]
    shared_escrow: Optional[Address]
    creators: Tuple[Address, ...]


def parse_aux_accounts(
    pool: Pool,
    aux: Sequence[AuxAccount],
    *,
    shared_program_id: Optional[Address] = None,
) -> ParsedAux:
    """
    Raises:
        ValidationError(INVALID_ACCOUNTS): wrong length, tag or address
    """
    entries = tuple(aux)
    for entry in entries:
        if not isinstance(entry, AuxAccount):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, f"not an aux account: {entry!r}")

    if not pool.using_shared_escrow():
        if any(entry.tag != AuxTag.CREATOR for entry in entries):
            raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "only creator accounts expected")
        return ParsedAux(None, None, tuple(entry.address for entry in entries))

    if len(entries) < 2:
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared liquidity accounts missing")
    program, escrow, rest = entries[0], entries[1], entries[2:]
    if program.tag != AuxTag.SHARED_PROGRAM or escrow.tag != AuxTag.SHARED_ESCROW:
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared liquidity accounts out of order")
    if shared_program_id is not None and program.address != shared_program_id:
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "unexpected shared liquidity program")
    if escrow.address != shared_escrow_address(pool.owner) or escrow.address != pool.shared_escrow_account:
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "shared escrow does not belong to the pool owner")
    if any(entry.tag != AuxTag.CREATOR for entry in rest):
        raise ValidationError(ErrorCode.INVALID_ACCOUNTS, "only creator accounts may follow the shared escrow")
    return ParsedAux(program.address, escrow.address, tuple(entry.address for entry in rest))
