"""
Tests for CosignerOrchestrator: one transaction per call.

A rejected call must leave liabilities, delegates, settings and the event
log exactly as they were.
"""

import pytest

from cosigner_config.schema import CosignerConfig
from cosigner_kernel.domain.authorization import CosignerData
from cosigner_kernel.exceptions import (
    InsufficientFundsError,
    NotOwnerError,
    RegistryRejectedError,
)
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.services import cosigner_orchestrator as orchestrator_module
from cosigner_kernel.services.cosigner_orchestrator import CosignerOrchestrator
from tests.fakes import (
    COSIGNER,
    DELEGATE,
    LENDER,
    OUTSIDER,
    OWNER,
    REGISTRY,
    STRANGER,
    TOKEN,
    TREASURY,
)


class TestTransactions:
    """Commit on success, roll back on failure."""

    def test_cosign_is_committed(self, orchestrator, make_authorization):
        assert orchestrator.request_cosign(REGISTRY, REGISTRY, 1, make_authorization(1)) is True

        assert orchestrator.liabilities(REGISTRY, 1) == (6562, 500)
        assert [e.name for e in orchestrator.list_events(EventName.COSIGN)] == [EventName.COSIGN]

    def test_registry_refusal_rolls_back_liability(self, orchestrator, registry, make_authorization):
        registry.accept_cosign = False

        with pytest.raises(RegistryRejectedError):
            orchestrator.request_cosign(REGISTRY, REGISTRY, 1, make_authorization(1))

        assert orchestrator.liabilities(REGISTRY, 1) is None
        assert orchestrator.list_events(EventName.COSIGN) == []

        registry.accept_cosign = True
        orchestrator.request_cosign(REGISTRY, REGISTRY, 1, make_authorization(1))
        assert orchestrator.liabilities(REGISTRY, 1) == (6562, 500)

    def test_failed_claim_leaves_liability_active(
        self, orchestrator, clock, ledger, token, lent_loan, make_authorization
    ):
        loan_id = lent_loan(1)
        orchestrator.request_cosign(REGISTRY, REGISTRY, loan_id, make_authorization(loan_id))
        clock.advance(3000)
        ledger.approve(loan_id, COSIGNER)
        token.balances[COSIGNER] = 0
        events_before = orchestrator.list_events()

        with pytest.raises(InsufficientFundsError):
            orchestrator.claim(LENDER, REGISTRY, loan_id)

        assert orchestrator.liabilities(REGISTRY, loan_id) == (6562, 500)
        assert orchestrator.list_events() == events_before

    def test_rejected_owner_call_changes_nothing(self, orchestrator):
        with pytest.raises(NotOwnerError):
            orchestrator.add_delegate(STRANGER, OUTSIDER)

        assert orchestrator.list_delegates() == [DELEGATE]
        assert orchestrator.owner() == OWNER


class TestLogging:
    """Per-call context and rejection logging."""

    def test_rejection_logged_with_code(self, orchestrator, captured_logs):
        with pytest.raises(NotOwnerError):
            orchestrator.set_url(STRANGER, "https://evil.example")

        rejected = [r for r in captured_logs() if r["message"] == "operation_rejected"]
        assert len(rejected) == 1
        assert rejected[0]["level"] == "WARNING"
        assert rejected[0]["error_code"] == "NOT_OWNER"
        assert rejected[0]["operation"] == "set_url"
        assert rejected[0]["actor"] == STRANGER

    def test_each_call_gets_a_correlation_id(self, orchestrator, captured_logs):
        orchestrator.set_url(OWNER, "https://a.example")
        orchestrator.set_url(OWNER, "https://b.example")

        events = [r for r in captured_logs() if r["message"] == "cosigner_event"]
        assert len(events) == 2
        assert events[0]["correlation_id"] != events[1]["correlation_id"]
        assert events[1]["payload"] == {"url": "https://b.example"}


class TestSurface:
    """Public operations reachable through the orchestrator."""

    def test_settings(self, orchestrator):
        assert orchestrator.url() == ""

        orchestrator.set_url(OWNER, "https://cosigner.example")
        orchestrator.transfer_ownership(OWNER, STRANGER)

        assert orchestrator.url() == "https://cosigner.example"
        assert orchestrator.owner() == STRANGER

    def test_delegates(self, orchestrator):
        assert orchestrator.add_delegate(OWNER, OUTSIDER) is True
        assert orchestrator.is_delegate(OUTSIDER)
        assert orchestrator.remove_delegate(OWNER, OUTSIDER) is True
        assert not orchestrator.is_delegate(OUTSIDER)

    def test_cost(self, orchestrator):
        blob = orchestrator.encode_data(1222, 6562, 500, 10)

        assert orchestrator.cost(REGISTRY, 1, blob) == 1222
        assert orchestrator.decode_data(blob) == CosignerData(1222, 6562, 500, 10)

    def test_hash_data_signature(self, orchestrator):
        digest = orchestrator.hash_data_signature(REGISTRY, 1, 1222, 6562, 500, 10)

        assert len(digest) == 32

    def test_full_lifecycle(
        self, orchestrator, clock, ledger, token, lent_loan, make_authorization
    ):
        loan_id = lent_loan(1)
        orchestrator.request_cosign(REGISTRY, REGISTRY, loan_id, make_authorization(loan_id))
        assert orchestrator.is_defaulted(REGISTRY, loan_id) is False

        clock.advance(501)
        assert orchestrator.is_defaulted(REGISTRY, loan_id) is True

        ledger.approve(loan_id, COSIGNER)
        result = orchestrator.claim(LENDER, REGISTRY, loan_id)
        assert result.claim_amount == 410933

        ledger.accrue(loan_id, 700)
        assert orchestrator.withdraw_partial_from_loan(OWNER, REGISTRY, loan_id, TREASURY, 200) == 200
        assert orchestrator.withdraw_from_loan(OWNER, REGISTRY, loan_id, TREASURY) == 500
        assert orchestrator.withdraw_batch_loans(OWNER, REGISTRY, [loan_id], TREASURY) == 0
        orchestrator.transfer_loan(OWNER, REGISTRY, loan_id, TREASURY)
        assert ledger.owner_of(loan_id) == TREASURY
        assert orchestrator.withdraw_partial(OWNER, TOKEN, TREASURY, 300) == 300
        assert token.balance_of(TREASURY) == 1000

        names = [e.name for e in orchestrator.list_events()]
        assert names == [
            EventName.DELEGATE_ADDED,
            EventName.COSIGN,
            EventName.CLAIM,
            EventName.RECEIVED,
            EventName.WITHDRAW_PARTIAL_FROM_LOAN,
            EventName.WITHDRAW_FROM_LOAN,
            EventName.WITHDRAW_BATCH_LOANS,
            EventName.TRANSFER_LOAN,
            EventName.WITHDRAW_PARTIAL,
        ]
        assert orchestrator.get_liability(REGISTRY, loan_id).claimed_by == LENDER


class TestFromConfig:
    """Bootstrapping from a CosignerConfig."""

    def test_initializes_owner_url_and_delegates(self, session_factory, directory, clock):
        config = CosignerConfig(
            cosigner_address=COSIGNER,
            owner_address=OWNER,
            settlement_token=TOKEN,
            url="https://cosigner.example",
            delegates=(DELEGATE, OUTSIDER),
        )

        orchestrator = CosignerOrchestrator.from_config(
            config, directory, session_factory=session_factory, clock=clock
        )

        assert orchestrator.owner() == OWNER
        assert orchestrator.url() == "https://cosigner.example"
        assert orchestrator.list_delegates() == sorted([DELEGATE, OUTSIDER])

    def test_configures_logging_at_configured_level(
        self, monkeypatch, session_factory, directory, clock
    ):
        levels = []
        monkeypatch.setattr(
            orchestrator_module, "configure_logging", lambda **kwargs: levels.append(kwargs["level"])
        )
        config = CosignerConfig(
            cosigner_address=COSIGNER,
            owner_address=OWNER,
            settlement_token=TOKEN,
            log_level="DEBUG",
        )

        CosignerOrchestrator.from_config(config, directory, session_factory=session_factory, clock=clock)

        assert levels == ["DEBUG"]

    def test_second_bootstrap_keeps_existing_settings(self, session_factory, directory, clock):
        first = CosignerConfig(cosigner_address=COSIGNER, owner_address=OWNER, settlement_token=TOKEN)
        CosignerOrchestrator.from_config(first, directory, session_factory=session_factory, clock=clock)

        second = CosignerConfig(
            cosigner_address=COSIGNER,
            owner_address=STRANGER,
            settlement_token=TOKEN,
            url="https://other.example",
        )
        orchestrator = CosignerOrchestrator.from_config(
            second, directory, session_factory=session_factory, clock=clock
        )

        assert orchestrator.owner() == OWNER
        assert orchestrator.url() == ""
