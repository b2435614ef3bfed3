"""
Module: cosigner_kernel.db.types
Responsibility: Column types shared by every model.  Centralizes how
    addresses and unsigned integers wider than 64 bits are persisted.
Architecture position: Kernel > DB.  MUST NOT import from models/,
    services/ or domain/.

Invariants enforced:
    - Addresses are stored as 42-character checksummed hex strings.
    - Unsigned integers (uint256 loan ids, uint128 amounts, uint64 arrears)
      round-trip exactly.  No backend integer type holds all of them, so
      they are stored as decimal text.
"""

from typing import Annotated

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

# 0x-prefixed, EIP-55 checksummed address
Address = Annotated[str, String(42)]

# Event names and short labels
ShortCode = Annotated[str, String(50)]

# Free text such as the metadata URL
LongText = Annotated[str, String(4000)]

# Widest unsigned integer we persist (uint256 has 78 decimal digits)
UINT_MAX_DIGITS = 78


class UIntString(TypeDecorator):
    """
    Non-negative Python int stored as decimal text.

    Guarantees:
        - process_bind_param: int -> str, rejects negatives.
        - process_result_value: str -> int.
    """

    impl = String(UINT_MAX_DIGITS)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"UIntString cannot store negative value {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is not None:
            return int(value)
        return None
