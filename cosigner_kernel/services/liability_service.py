"""
LiabilityService -- the cosigner's per-loan state machine.

Responsibility:
    Quotes and accepts cosign requests, decides whether a covered loan is in
    default, and settles claims.  One ``Liability`` row per
    (registry, loan id):

        Absent --request_cosign--> Active --claim--> Claimed

    There is no transition out of Claimed and rows are never deleted.

Invariants enforced:
    - A liability is created at most once per key, claimed or not.
    - Only a defaulted, unclaimed liability can be claimed, and only by
      the current holder of the loan's collateral token.
    - Claim payout is floor(coverage * closing obligation / 10000),
      converted to settlement units with the loan's oracle.
    - External effects of a claim happen only after every check has passed,
      so a refused claim moves neither tokens nor collateral.

Failure modes:
    See cosigner_kernel.exceptions; every failure aborts the call and the
    orchestrator rolls back anything flushed so far.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from cosigner_kernel.domain.addresses import is_same_address, to_address
from cosigner_kernel.domain.authorization import decode_authorization, decode_data
from cosigner_kernel.domain.clock import Clock
from cosigner_kernel.domain.conversion import CurrencyConverter
from cosigner_kernel.domain.coverage import claim_amount, is_past_arrears
from cosigner_kernel.domain.interfaces import ContractDirectory
from cosigner_kernel.domain.signature import SignatureVerifier, authorize
from cosigner_kernel.exceptions import (
    InsufficientFundsError,
    LiabilityAlreadyExistsError,
    LiabilityNotFoundError,
    NotAuthorizedError,
    NotDefaultedError,
    NotOwnerError,
    RegistryRejectedError,
    WrongCallerError,
    ZeroCoverageError,
)
from cosigner_kernel.logging_config import get_logger
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.models.liability import Liability, LiabilityStatus
from cosigner_kernel.services.base import BaseService
from cosigner_kernel.services.delegate_service import DelegateService
from cosigner_kernel.services.event_recorder import EventRecorder

logger = get_logger("services.liability")


@dataclass(frozen=True)
class LiabilityInfo:
    """Immutable DTO for a liability."""

    registry_address: str
    loan_id: int
    coverage: int
    required_arrears: int
    signer: str
    cost: int
    status: LiabilityStatus
    claimed_by: str | None
    claim_amount: int | None

    @property
    def is_claimed(self) -> bool:
        return self.status == LiabilityStatus.CLAIMED


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a settled claim."""

    registry_address: str
    loan_id: int
    claimant: str
    claim_amount: int


class LiabilityService(BaseService[Liability]):
    """Cosign acceptance, default detection and claim settlement."""

    def __init__(
        self,
        session: Session,
        clock: Clock,
        directory: ContractDirectory,
        verifier: SignatureVerifier,
        delegates: DelegateService,
        recorder: EventRecorder,
        cosigner_address: str,
        settlement_token: str,
    ):
        super().__init__(session)
        self._clock = clock
        self._directory = directory
        self._verifier = verifier
        self._delegates = delegates
        self._recorder = recorder
        self._converter = CurrencyConverter(directory)
        self.cosigner_address = to_address(cosigner_address)
        self.settlement_token = to_address(settlement_token)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _to_dto(self, liability: Liability) -> LiabilityInfo:
        return LiabilityInfo(
            registry_address=liability.registry_address,
            loan_id=liability.loan_id,
            coverage=liability.coverage,
            required_arrears=liability.required_arrears,
            signer=liability.signer,
            cost=liability.cost,
            status=liability.status,
            claimed_by=liability.claimed_by,
            claim_amount=liability.claim_amount,
        )

    def _find(self, registry: str, loan_id: int) -> Liability | None:
        stmt = select(Liability).where(
            Liability.registry_address == to_address(registry),
            Liability.loan_id == loan_id,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _get(self, registry: str, loan_id: int) -> Liability:
        liability = self._find(registry, loan_id)
        if liability is None:
            raise LiabilityNotFoundError(registry, loan_id)
        return liability

    def find_liability(self, registry: str, loan_id: int) -> LiabilityInfo | None:
        liability = self._find(registry, loan_id)
        return self._to_dto(liability) if liability else None

    def get_liability(self, registry: str, loan_id: int) -> LiabilityInfo:
        """
        Raises:
            LiabilityNotFoundError: If no liability exists for the loan.
        """
        return self._to_dto(self._get(registry, loan_id))

    def liabilities(self, registry: str, loan_id: int) -> tuple[int, int] | None:
        """(coverage, required_arrears) for the loan, or None when absent."""
        liability = self._find(registry, loan_id)
        if liability is None:
            return None
        return liability.coverage, liability.required_arrears

    # ------------------------------------------------------------------
    # Registry-facing
    # ------------------------------------------------------------------

    def quote_cost(
        self,
        registry: str,
        loan_id: int,
        authorization: bytes,
        oracle_address: str | None = None,
        oracle_data: bytes = b"",
    ) -> int:
        """Fee of the authorization in settlement units.  Read-only."""
        data = decode_data(authorization)
        return self._converter.to_settlement_units(oracle_address, data.cost, oracle_data)

    def request_cosign(
        self,
        caller: str,
        registry: str,
        loan_id: int,
        authorization: bytes,
        extra: bytes = b"",
    ) -> LiabilityInfo:
        """
        Accept a cosign request and record the liability.

        Checks run in a fixed order: caller, blob length, signature and
        delegate and expiry, coverage, existence.

        Raises:
            WrongCallerError, InvalidLengthError, InvalidSignatureError,
            NotDelegateError, AuthorizationExpiredError, ZeroCoverageError,
            LiabilityAlreadyExistsError, RegistryRejectedError.
        """
        if not is_same_address(caller, registry):
            raise WrongCallerError(caller, registry)
        registry = to_address(registry)

        decoded = decode_authorization(authorization)
        data = decoded.data
        signer = authorize(
            registry,
            loan_id,
            data,
            decoded.signature,
            verifier=self._verifier,
            is_delegate=self._delegates.is_delegate,
            now=self._clock.timestamp(),
        )

        if data.coverage == 0:
            raise ZeroCoverageError(registry, loan_id)
        if self._find(registry, loan_id) is not None:
            raise LiabilityAlreadyExistsError(registry, loan_id)

        liability = Liability(
            registry_address=registry,
            loan_id=loan_id,
            coverage=data.coverage,
            required_arrears=data.required_arrears,
            signer=signer,
            cost=data.cost,
            created_by=registry,
        )
        self.session.add(liability)
        self.session.flush()

        if not self._directory.registry(registry).cosign(loan_id, data.cost):
            raise RegistryRejectedError(registry, loan_id, data.cost)

        logger.info(
            "liability_created",
            extra={
                "loan": str(loan_id),
                "coverage": data.coverage,
                "required_arrears": str(data.required_arrears),
                "signer": signer,
            },
        )
        self._recorder.emit(
            EventName.COSIGN,
            registry,
            registry=registry,
            loan_id=loan_id,
            signer=signer,
            data=authorization,
            extra=extra,
        )
        return self._to_dto(liability)

    # ------------------------------------------------------------------
    # Lender-facing
    # ------------------------------------------------------------------

    def is_defaulted(self, registry: str, loan_id: int) -> bool:
        """
        True iff the loan is unpaid and past ``due_time + required_arrears``.

        Claimed liabilities stay queryable.

        Raises:
            LiabilityNotFoundError: If no liability exists for the loan.
        """
        liability = self._get(registry, loan_id)
        return self._past_arrears(liability)

    def _past_arrears(self, liability: Liability) -> bool:
        ledger = self._directory.registry(liability.registry_address).ledger
        status = ledger.payment_status(liability.loan_id)
        return is_past_arrears(
            self._clock.timestamp(),
            status.due_time,
            liability.required_arrears,
            status.is_paid,
        )

    def claim(
        self,
        sender: str,
        registry: str,
        loan_id: int,
        oracle_data: bytes = b"",
    ) -> ClaimResult:
        """
        Pay the covered share of a defaulted loan to its lender and take
        over the loan's collateral token.

        Raises:
            LiabilityNotFoundError: No liability for the loan.
            NotDefaultedError: Already claimed, or the loan is not in default.
            NotOwnerError: ``sender`` does not hold the collateral token.
            InsufficientFundsError: Cosigner balance cannot cover the payout.
            NotAuthorizedError: Cosigner is not approved to move the token.
            OracleError: Conversion of the payout failed.
        """
        liability = self._get(registry, loan_id)
        registry = liability.registry_address

        if liability.is_claimed:
            raise NotDefaultedError(registry, loan_id, "liability already claimed")

        loan_registry = self._directory.registry(registry)
        ledger = loan_registry.ledger
        holder = to_address(ledger.owner_of(loan_id))
        if not is_same_address(sender, holder):
            raise NotOwnerError(sender, holder, subject=f"loan {loan_id}")
        sender = holder

        if not self._past_arrears(liability):
            raise NotDefaultedError(registry, loan_id, "loan is not in default")

        obligation = loan_registry.closing_obligation(loan_id)
        amount = self._converter.to_settlement_units(
            loan_registry.oracle_of(loan_id),
            claim_amount(liability.coverage, obligation),
            oracle_data,
        )

        token = self._directory.token(self.settlement_token)
        available = token.balance_of(self.cosigner_address)
        if available < amount:
            raise InsufficientFundsError(
                self.settlement_token, self.cosigner_address, amount, available
            )
        if not ledger.can_transfer(self.cosigner_address, loan_id):
            raise NotAuthorizedError(registry, loan_id, "cosigner is not approved")

        if not token.transfer(self.cosigner_address, sender, amount):
            raise InsufficientFundsError(
                self.settlement_token, self.cosigner_address, amount, available
            )
        if not ledger.transfer_from(self.cosigner_address, sender, self.cosigner_address, loan_id):
            raise NotAuthorizedError(registry, loan_id, "ledger refused the transfer")

        liability.coverage = 0
        liability.claimed_by = sender
        liability.claim_amount = amount
        liability.updated_by = sender
        self.session.flush()

        logger.info(
            "liability_claimed",
            extra={
                "loan": str(loan_id),
                "claimant": sender,
                "closing_obligation": str(obligation),
                "claim_amount": str(amount),
            },
        )
        self._recorder.emit(
            EventName.CLAIM,
            sender,
            registry=registry,
            loan_id=loan_id,
            sender=sender,
            claim_amount=amount,
            oracle_data=oracle_data,
        )
        self._recorder.emit(
            EventName.RECEIVED,
            sender,
            operator=self.cosigner_address,
            previous_owner=sender,
            loan_id=loan_id,
            data=b"",
        )
        return ClaimResult(
            registry_address=registry,
            loan_id=loan_id,
            claimant=sender,
            claim_amount=amount,
        )
