"""Account address normalization."""

from eth_utils import is_address, to_checksum_address

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def to_address(value: str | bytes) -> str:
    """
    Normalize an address to its EIP-55 checksummed form.

    Raises:
        ValueError: If ``value`` is not a 20-byte address.
    """
    if not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def is_null_address(value: str | bytes | None) -> bool:
    """True for None, the empty string and the zero address."""
    if not value:
        return True
    return to_address(value) == NULL_ADDRESS


def is_same_address(value: str | bytes | None, expected: str | bytes | None) -> bool:
    """True when both are well-formed addresses naming the same account."""
    if not value or not expected or not is_address(value) or not is_address(expected):
        return False
    return to_checksum_address(value) == to_checksum_address(expected)
