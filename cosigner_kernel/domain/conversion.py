"""
Conversion -- foreign currency amounts into settlement-token units.

Rounding policy:
    ``floor(amount * numerator / denominator)``.  Truncation always favors
    the payer and is observable; do not replace it with half-up rounding.
"""

from cosigner_kernel.domain.addresses import is_null_address
from cosigner_kernel.domain.interfaces import ContractDirectory
from cosigner_kernel.exceptions import OracleError, UnknownContractError
from cosigner_kernel.logging_config import get_logger

logger = get_logger("domain.conversion")


class CurrencyConverter:
    """Applies a rate oracle, or the identity when there is none."""

    def __init__(self, directory: ContractDirectory):
        self._directory = directory

    def to_settlement_units(
        self,
        oracle_address: str | None,
        amount: int,
        oracle_data: bytes = b"",
    ) -> int:
        """
        Convert ``amount`` using the oracle at ``oracle_address``.

        Returns ``amount`` unchanged for the null oracle.

        Raises:
            OracleError: Unknown oracle, rejected data, or a degenerate rate.
        """
        if is_null_address(oracle_address):
            return amount

        try:
            oracle = self._directory.oracle(oracle_address)
        except UnknownContractError as exc:
            raise OracleError(oracle_address, "unknown oracle") from exc

        try:
            numerator, denominator = oracle.read_sample(oracle_data)
        except ValueError as exc:
            raise OracleError(oracle_address, f"rejected oracle data: {exc}") from exc

        if denominator == 0:
            raise OracleError(oracle_address, "zero denominator")
        if numerator < 0 or denominator < 0:
            raise OracleError(oracle_address, "negative rate")

        converted = amount * numerator // denominator
        logger.debug(
            "currency_converted",
            extra={
                "oracle": oracle_address,
                "amount": str(amount),
                "numerator": str(numerator),
                "denominator": str(denominator),
                "converted": str(converted),
            },
        )
        return converted
