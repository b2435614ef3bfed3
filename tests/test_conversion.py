"""Tests for currency conversion and coverage arithmetic."""

import pytest

from cosigner_kernel.domain.addresses import NULL_ADDRESS
from cosigner_kernel.domain.conversion import CurrencyConverter
from cosigner_kernel.domain.coverage import claim_amount, is_past_arrears
from cosigner_kernel.domain.interfaces import ContractDirectory
from cosigner_kernel.exceptions import OracleError
from tests.fakes import ORACLE, STRANGER, FakeRateOracle


def _converter(*oracles) -> CurrencyConverter:
    return CurrencyConverter(ContractDirectory(oracles=oracles))


class TestCurrencyConverter:
    """floor(amount * numerator / denominator), identity without an oracle."""

    @pytest.mark.parametrize("oracle_address", [None, "", NULL_ADDRESS])
    def test_null_oracle_is_identity(self, oracle_address):
        assert _converter().to_settlement_units(oracle_address, 516516) == 516516

    def test_rate_applied(self):
        converter = _converter(FakeRateOracle(ORACLE, 4, 8))

        assert converter.to_settlement_units(ORACLE, 5516512) == 2758256

    def test_truncates_toward_zero(self):
        converter = _converter(FakeRateOracle(ORACLE, 1, 3))

        assert converter.to_settlement_units(ORACLE, 10) == 3

    def test_oracle_data_forwarded(self):
        oracle = FakeRateOracle(ORACLE, 2, 1, accepted_data=b"\x01rate")
        converter = _converter(oracle)

        assert converter.to_settlement_units(ORACLE, 7, b"\x01rate") == 14
        assert oracle.reads == [b"\x01rate"]

    def test_rejected_data_raises_oracle_error(self):
        converter = _converter(FakeRateOracle(ORACLE, 2, 1, accepted_data=b"ok"))

        with pytest.raises(OracleError) as exc_info:
            converter.to_settlement_units(ORACLE, 7, b"forged")

        assert exc_info.value.code == "ORACLE_ERROR"

    def test_zero_denominator_raises(self):
        with pytest.raises(OracleError):
            _converter(FakeRateOracle(ORACLE, 1, 0)).to_settlement_units(ORACLE, 7)

    def test_negative_rate_raises(self):
        with pytest.raises(OracleError):
            _converter(FakeRateOracle(ORACLE, -1, 2)).to_settlement_units(ORACLE, 7)

    def test_unknown_oracle_raises(self):
        with pytest.raises(OracleError):
            _converter().to_settlement_units(STRANGER, 7)


class TestCoverageArithmetic:
    """Default threshold and claim payout."""

    def test_claim_amount_truncates(self):
        assert claim_amount(6562, 98875) == 64881
        assert claim_amount(6562, 626232) == 410933

    def test_full_coverage_pays_obligation(self):
        assert claim_amount(10_000, 12345) == 12345

    def test_default_is_strictly_after_threshold(self):
        assert not is_past_arrears(now=1_500, due_time=1_000, required_arrears=500, is_paid=False)
        assert is_past_arrears(now=1_501, due_time=1_000, required_arrears=500, is_paid=False)

    def test_paid_loan_never_defaults(self):
        assert not is_past_arrears(now=10**12, due_time=1_000, required_arrears=0, is_paid=True)
