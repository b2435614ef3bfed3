"""
Pytest fixtures for the cosigner kernel test suite.

Provides:
- A fresh in-memory SQLite database per test
- Deterministic clock and in-memory collaborators (tests/fakes.py)
- A session-bound service graph and the transactional orchestrator
- Signed authorization builders
"""

import json
import logging
from io import StringIO

import pytest

from cosigner_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from cosigner_kernel.domain.authorization import CosignerData
from cosigner_kernel.domain.clock import DeterministicClock
from cosigner_kernel.domain.interfaces import ContractDirectory
from cosigner_kernel.domain.signature import EthereumSignatureVerifier, sign_authorization
from cosigner_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from cosigner_kernel.services.cosigner_orchestrator import (
    CosignerOrchestrator,
    CosignerServices,
)
from tests.fakes import (
    COSIGNER,
    DELEGATE,
    DELEGATE_KEY,
    LENDER,
    NOW,
    ORACLE,
    OWNER,
    REGISTRY,
    TOKEN,
    FakeLoanLedger,
    FakeLoanRegistry,
    FakeRateOracle,
    FakeToken,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cosigner_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.claim(...)
            logs = captured_logs()
            assert any(r["message"] == "liability_claimed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cosigner_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with all tables."""
    eng = init_engine_from_url("sqlite://")
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    """Session for service-level tests; never committed."""
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


# =============================================================================
# Time and collaborators
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock.at(NOW)


@pytest.fixture
def token():
    """Settlement token; the cosigner starts with a float of 10**9 units."""
    tok = FakeToken(TOKEN)
    tok.mint(COSIGNER, 10**9)
    return tok


@pytest.fixture
def ledger(token):
    return FakeLoanLedger(proceeds_token=token)


@pytest.fixture
def registry(ledger):
    return FakeLoanRegistry(REGISTRY, ledger)


@pytest.fixture
def oracle():
    """Rate oracle quoting 4/8 settlement units per unit of currency."""
    return FakeRateOracle(ORACLE, 4, 8)


@pytest.fixture
def directory(registry, oracle, token):
    return ContractDirectory(registries=[registry], oracles=[oracle], tokens=[token])


@pytest.fixture
def verifier():
    return EthereumSignatureVerifier()


# =============================================================================
# Cosigner
# =============================================================================


@pytest.fixture
def services(session, clock, directory, verifier):
    """Service graph on the test session, initialized with one delegate."""
    svc = CosignerServices(session, clock, directory, verifier, COSIGNER, TOKEN)
    svc.ownership.initialize(OWNER)
    svc.delegates.add_delegate(OWNER, DELEGATE)
    return svc


@pytest.fixture
def orchestrator(session_factory, clock, directory, verifier):
    """Transactional orchestrator, initialized with one delegate."""
    orch = CosignerOrchestrator(
        session_factory=session_factory,
        directory=directory,
        cosigner_address=COSIGNER,
        settlement_token=TOKEN,
        clock=clock,
        verifier=verifier,
    )
    orch.initialize(owner=OWNER, delegates=[DELEGATE])
    return orch


@pytest.fixture
def make_authorization():
    """
    Build a signed 99-byte authorization.

    Defaults: cost 1222, coverage 6562, required arrears 500, expiring
    1000 seconds after NOW, signed by DELEGATE for REGISTRY.
    """

    def _make(
        loan_id: int,
        cost: int = 1222,
        coverage: int = 6562,
        required_arrears: int = 500,
        expiration: int = NOW + 1000,
        key: str = DELEGATE_KEY,
        registry: str = REGISTRY,
    ) -> bytes:
        data = CosignerData(
            cost=cost,
            coverage=coverage,
            required_arrears=required_arrears,
            expiration=expiration,
        )
        return sign_authorization(key, registry, loan_id, data)

    return _make


@pytest.fixture
def lent_loan(ledger, registry):
    """
    Register a lent loan owned by LENDER, due at NOW, with a closing
    obligation of 626232.  Returns its id.
    """

    def _lend(loan_id: int = 1, obligation: int = 626232, due_time: int = NOW) -> int:
        ledger.register(loan_id, LENDER, due_time=due_time)
        registry.obligations[loan_id] = obligation
        return loan_id

    return _lend
