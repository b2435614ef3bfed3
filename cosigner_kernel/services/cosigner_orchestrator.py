"""
cosigner_kernel.services.cosigner_orchestrator -- public surface of the cosigner.

Responsibility:
    ``CosignerServices`` wires every kernel service around one session, in
    dependency order.  ``CosignerOrchestrator`` is what registries, lenders
    and the owner call: each public method runs inside its own
    ``session_scope`` so that it commits as a whole or leaves no trace.

Invariants enforced:
    - One transaction per public call.  A failure rolls back every row the
      call flushed (liabilities, delegates, settings, events).
    - Each call runs with a fresh correlation id and the caller bound into
      LogContext; rejections are logged once, with their error code.

Usage:
    orchestrator = CosignerOrchestrator(
        session_factory=get_session_factory(),
        directory=ContractDirectory(registries=[...], tokens=[...]),
        cosigner_address=config.cosigner_address,
        settlement_token=config.settlement_token,
    )
    orchestrator.initialize(owner=config.owner_address)
    orchestrator.request_cosign(registry, registry, loan_id, blob)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, TypeVar
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from cosigner_kernel.db.engine import session_scope
from cosigner_kernel.domain.addresses import to_address
from cosigner_kernel.domain.authorization import CosignerData, decode_data, encode_data
from cosigner_kernel.domain.clock import Clock, SystemClock
from cosigner_kernel.domain.interfaces import ContractDirectory
from cosigner_kernel.domain.signature import (
    EthereumSignatureVerifier,
    SignatureVerifier,
    compute_digest,
)
from cosigner_kernel.exceptions import CosignerKernelError
from cosigner_kernel.logging_config import LogContext, configure_logging, get_logger
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.services.delegate_service import DelegateService
from cosigner_kernel.services.event_recorder import EventInfo, EventRecorder
from cosigner_kernel.services.liability_service import (
    ClaimResult,
    LiabilityInfo,
    LiabilityService,
)
from cosigner_kernel.services.ownership_service import OwnershipService, SettingsInfo
from cosigner_kernel.services.treasury_service import TreasuryService

if TYPE_CHECKING:
    from cosigner_config.schema import CosignerConfig

logger = get_logger("services.orchestrator")

T = TypeVar("T")


class CosignerServices:
    """Kernel services sharing one Session and Clock."""

    def __init__(
        self,
        session: Session,
        clock: Clock,
        directory: ContractDirectory,
        verifier: SignatureVerifier,
        cosigner_address: str,
        settlement_token: str,
    ) -> None:
        self.session = session
        self.recorder = EventRecorder(session, clock)
        self.ownership = OwnershipService(session, cosigner_address, self.recorder)
        self.delegates = DelegateService(session, self.ownership, self.recorder)
        self.liabilities = LiabilityService(
            session,
            clock,
            directory,
            verifier,
            self.delegates,
            self.recorder,
            cosigner_address,
            settlement_token,
        )
        self.treasury = TreasuryService(
            session,
            directory,
            self.ownership,
            self.liabilities,
            self.recorder,
            cosigner_address,
        )


class CosignerOrchestrator:
    """Transactional facade over the cosigner kernel."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        directory: ContractDirectory,
        cosigner_address: str,
        settlement_token: str,
        clock: Clock | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._verifier = verifier or EthereumSignatureVerifier()
        self.directory = directory
        self.address = to_address(cosigner_address)
        self.settlement_token = to_address(settlement_token)

    @classmethod
    def from_config(
        cls,
        config: CosignerConfig,
        directory: ContractDirectory,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> CosignerOrchestrator:
        """
        Build an orchestrator from configuration and make sure the cosigner
        is initialized with the configured owner, URL and delegates.

        Logging is configured at ``config.log_level``.  When no session
        factory is given, the engine is initialized from
        ``config.database_url`` and the tables are created.
        """
        configure_logging(level=config.log_level)
        if session_factory is None:
            from cosigner_kernel.db.engine import (
                create_tables,
                get_session_factory,
                init_engine_from_url,
            )

            init_engine_from_url(config.database_url)
            create_tables()
            session_factory = get_session_factory()

        orchestrator = cls(
            session_factory=session_factory,
            directory=directory,
            cosigner_address=config.cosigner_address,
            settlement_token=config.settlement_token,
            clock=clock,
            verifier=verifier,
        )
        orchestrator.initialize(
            owner=config.owner_address,
            url=config.url,
            delegates=config.delegates,
        )
        return orchestrator

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        actor: str | None,
        fn: Callable[[CosignerServices], T],
        registry: str | None = None,
        loan_id: int | None = None,
    ) -> T:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            operation=operation,
            actor=actor,
            registry=registry,
            loan_id=None if loan_id is None else str(loan_id),
        ):
            try:
                with session_scope(self._session_factory) as session:
                    services = CosignerServices(
                        session,
                        self._clock,
                        self.directory,
                        self._verifier,
                        self.address,
                        self.settlement_token,
                    )
                    return fn(services)
            except CosignerKernelError as exc:
                logger.warning(
                    "operation_rejected",
                    extra={"error_code": exc.code, "error": str(exc)},
                )
                raise

    # ------------------------------------------------------------------
    # Off-chain tooling (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def encode_data(cost: int, coverage: int, required_arrears: int, expiration: int) -> bytes:
        return encode_data(cost, coverage, required_arrears, expiration)

    @staticmethod
    def decode_data(blob: bytes) -> CosignerData:
        return decode_data(blob)

    @staticmethod
    def hash_data_signature(
        registry: str,
        loan_id: int,
        cost: int,
        coverage: int,
        required_arrears: int,
        expiration: int,
    ) -> bytes:
        return compute_digest(registry, loan_id, cost, coverage, required_arrears, expiration)

    # ------------------------------------------------------------------
    # Settings, ownership, delegates
    # ------------------------------------------------------------------

    def initialize(
        self,
        owner: str,
        url: str = "",
        delegates: Iterable[str] = (),
    ) -> SettingsInfo:
        """Create the cosigner settings once and seed the delegate set."""

        def _initialize(s: CosignerServices) -> SettingsInfo:
            settings = s.ownership.initialize(owner, url)
            for delegate in delegates:
                s.delegates.add_delegate(settings.owner_address, delegate)
            return settings

        return self._run("initialize", owner, _initialize)

    def owner(self) -> str:
        return self._run("owner", None, lambda s: s.ownership.owner())

    def url(self) -> str:
        return self._run("url", None, lambda s: s.ownership.url())

    def set_url(self, sender: str, url: str) -> SettingsInfo:
        return self._run("set_url", sender, lambda s: s.ownership.set_url(sender, url))

    def transfer_ownership(self, sender: str, new_owner: str) -> SettingsInfo:
        return self._run(
            "transfer_ownership",
            sender,
            lambda s: s.ownership.transfer_ownership(sender, new_owner),
        )

    def add_delegate(self, sender: str, delegate: str) -> bool:
        return self._run(
            "add_delegate", sender, lambda s: s.delegates.add_delegate(sender, delegate)
        )

    def remove_delegate(self, sender: str, delegate: str) -> bool:
        return self._run(
            "remove_delegate", sender, lambda s: s.delegates.remove_delegate(sender, delegate)
        )

    def is_delegate(self, address: str) -> bool:
        return self._run("is_delegate", None, lambda s: s.delegates.is_delegate(address))

    def list_delegates(self) -> list[str]:
        return self._run("list_delegates", None, lambda s: s.delegates.list_delegates())

    # ------------------------------------------------------------------
    # Registry-facing
    # ------------------------------------------------------------------

    def cost(
        self,
        registry: str,
        loan_id: int,
        data: bytes,
        oracle: str | None = None,
        oracle_data: bytes = b"",
    ) -> int:
        return self._run(
            "cost",
            None,
            lambda s: s.liabilities.quote_cost(registry, loan_id, data, oracle, oracle_data),
            registry=registry,
            loan_id=loan_id,
        )

    def request_cosign(
        self,
        caller: str,
        registry: str,
        loan_id: int,
        data: bytes,
        extra: bytes = b"",
    ) -> bool:
        self._run(
            "request_cosign",
            caller,
            lambda s: s.liabilities.request_cosign(caller, registry, loan_id, data, extra),
            registry=registry,
            loan_id=loan_id,
        )
        return True

    # ------------------------------------------------------------------
    # Lender-facing
    # ------------------------------------------------------------------

    def liabilities(self, registry: str, loan_id: int) -> tuple[int, int] | None:
        return self._run(
            "liabilities", None, lambda s: s.liabilities.liabilities(registry, loan_id)
        )

    def get_liability(self, registry: str, loan_id: int) -> LiabilityInfo:
        return self._run(
            "get_liability", None, lambda s: s.liabilities.get_liability(registry, loan_id)
        )

    def is_defaulted(self, registry: str, loan_id: int) -> bool:
        return self._run(
            "is_defaulted",
            None,
            lambda s: s.liabilities.is_defaulted(registry, loan_id),
            registry=registry,
            loan_id=loan_id,
        )

    def claim(
        self,
        sender: str,
        registry: str,
        loan_id: int,
        oracle_data: bytes = b"",
    ) -> ClaimResult:
        return self._run(
            "claim",
            sender,
            lambda s: s.liabilities.claim(sender, registry, loan_id, oracle_data),
            registry=registry,
            loan_id=loan_id,
        )

    # ------------------------------------------------------------------
    # Owner-facing treasury
    # ------------------------------------------------------------------

    def withdraw_from_loan(self, sender: str, registry: str, loan_id: int, to: str) -> int:
        return self._run(
            "withdraw_from_loan",
            sender,
            lambda s: s.treasury.withdraw_from_loan(sender, registry, loan_id, to),
            registry=registry,
            loan_id=loan_id,
        )

    def withdraw_partial_from_loan(
        self,
        sender: str,
        registry: str,
        loan_id: int,
        to: str,
        amount: int,
    ) -> int:
        return self._run(
            "withdraw_partial_from_loan",
            sender,
            lambda s: s.treasury.withdraw_partial_from_loan(sender, registry, loan_id, to, amount),
            registry=registry,
            loan_id=loan_id,
        )

    def withdraw_batch_loans(
        self,
        sender: str,
        registry: str,
        loan_ids: Sequence[int],
        to: str,
    ) -> int:
        return self._run(
            "withdraw_batch_loans",
            sender,
            lambda s: s.treasury.withdraw_batch_loans(sender, registry, loan_ids, to),
            registry=registry,
        )

    def transfer_loan(self, sender: str, registry: str, loan_id: int, to: str) -> None:
        self._run(
            "transfer_loan",
            sender,
            lambda s: s.treasury.transfer_loan(sender, registry, loan_id, to),
            registry=registry,
            loan_id=loan_id,
        )

    def withdraw_partial(self, sender: str, token: str, to: str, amount: int) -> int:
        return self._run(
            "withdraw_partial",
            sender,
            lambda s: s.treasury.withdraw_partial(sender, token, to, amount),
        )

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def list_events(self, name: EventName | None = None) -> list[EventInfo]:
        return self._run("list_events", None, lambda s: s.recorder.list_events(name))
