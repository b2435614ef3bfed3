"""
TreasuryService -- owner-gated recovery of claimed loans and token sweeps.

Every operation checks, in order: the sender is the cosigner owner
(NotOwnerError), then the destination is not the null address
(InvalidDestinationError), then any explicit amount fits uint256
(FieldOutOfRangeError).  All checks run before any collaborator is
asked to move anything.

Batch withdrawal is atomic: the ledger's batch primitive is invoked once
and any failure fails the whole call.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from cosigner_kernel.domain.addresses import is_null_address, to_address
from cosigner_kernel.domain.interfaces import ContractDirectory, LoanLedger
from cosigner_kernel.exceptions import (
    FieldOutOfRangeError,
    InsufficientFundsError,
    InvalidDestinationError,
    NotAuthorizedError,
    NotClaimedError,
)
from cosigner_kernel.logging_config import get_logger
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.models.liability import Liability
from cosigner_kernel.services.base import BaseService
from cosigner_kernel.services.event_recorder import EventRecorder
from cosigner_kernel.services.liability_service import LiabilityService
from cosigner_kernel.services.ownership_service import OwnershipService

logger = get_logger("services.treasury")


class TreasuryService(BaseService[Liability]):
    """Withdrawals of recovered proceeds, collateral transfers and sweeps."""

    def __init__(
        self,
        session: Session,
        directory: ContractDirectory,
        ownership: OwnershipService,
        liabilities: LiabilityService,
        recorder: EventRecorder,
        cosigner_address: str,
    ):
        super().__init__(session)
        self._directory = directory
        self._ownership = ownership
        self._liabilities = liabilities
        self._recorder = recorder
        self.cosigner_address = to_address(cosigner_address)

    def _authorize(self, sender: str, to: str) -> tuple[str, str]:
        self._ownership.require_owner(sender)
        if is_null_address(to):
            raise InvalidDestinationError(to)
        return to_address(sender), to_address(to)

    @staticmethod
    def _require_amount(amount: int) -> None:
        if not 0 <= amount < 2**256:
            raise FieldOutOfRangeError("amount", amount, 256)

    def _ledger(self, registry: str) -> LoanLedger:
        return self._directory.registry(registry).ledger

    def withdraw_from_loan(self, sender: str, registry: str, loan_id: int, to: str) -> int:
        """
        Withdraw every unit of proceeds the ledger holds for the loan.

        Returns:
            The amount withdrawn.
        """
        sender, to = self._authorize(sender, to)
        registry = to_address(registry)
        try:
            amount = self._ledger(registry).withdraw(self.cosigner_address, loan_id, to)
        except PermissionError as exc:
            raise NotAuthorizedError(registry, loan_id, str(exc)) from exc

        logger.info(
            "loan_proceeds_withdrawn",
            extra={"loan": str(loan_id), "to": to, "amount": str(amount)},
        )
        self._recorder.emit(
            EventName.WITHDRAW_FROM_LOAN,
            sender,
            registry=registry,
            loan_id=loan_id,
            to=to,
            amount=amount,
        )
        return amount

    def withdraw_partial_from_loan(
        self,
        sender: str,
        registry: str,
        loan_id: int,
        to: str,
        amount: int,
    ) -> int:
        """
        Withdraw exactly ``amount`` of the loan's proceeds.

        Raises:
            FieldOutOfRangeError: ``amount`` is negative or wider than uint256.
            InsufficientFundsError: ``amount`` exceeds the accrued proceeds.
        """
        sender, to = self._authorize(sender, to)
        self._require_amount(amount)
        registry = to_address(registry)
        ledger = self._ledger(registry)

        available = ledger.accrued_balance(loan_id)
        if amount > available:
            raise InsufficientFundsError(
                f"{registry}#{loan_id}", self.cosigner_address, amount, available
            )
        try:
            ledger.withdraw_partial(self.cosigner_address, loan_id, to, amount)
        except PermissionError as exc:
            raise NotAuthorizedError(registry, loan_id, str(exc)) from exc

        logger.info(
            "loan_proceeds_partially_withdrawn",
            extra={"loan": str(loan_id), "to": to, "amount": str(amount)},
        )
        self._recorder.emit(
            EventName.WITHDRAW_PARTIAL_FROM_LOAN,
            sender,
            registry=registry,
            loan_id=loan_id,
            to=to,
            amount=amount,
        )
        return amount

    def withdraw_batch_loans(
        self,
        sender: str,
        registry: str,
        loan_ids: Sequence[int],
        to: str,
    ) -> int:
        """
        Withdraw all proceeds of every loan in ``loan_ids``, in order.

        Returns:
            The total withdrawn.
        """
        sender, to = self._authorize(sender, to)
        registry = to_address(registry)
        loan_ids = list(loan_ids)
        try:
            total = self._ledger(registry).withdraw_batch(self.cosigner_address, loan_ids, to)
        except PermissionError as exc:
            raise NotAuthorizedError(registry, None, str(exc)) from exc

        logger.info(
            "loan_proceeds_batch_withdrawn",
            extra={"loans": len(loan_ids), "to": to, "amount": str(total)},
        )
        self._recorder.emit(
            EventName.WITHDRAW_BATCH_LOANS,
            sender,
            registry=registry,
            loan_ids=loan_ids,
            to=to,
            amount=total,
        )
        return total

    def transfer_loan(self, sender: str, registry: str, loan_id: int, to: str) -> None:
        """
        Hand a claimed loan's collateral token to ``to``.

        Raises:
            NotAuthorizedError: No liability exists for the loan.
            NotClaimedError: The liability has not been claimed.
        """
        sender, to = self._authorize(sender, to)
        registry = to_address(registry)

        liability = self._liabilities.find_liability(registry, loan_id)
        if liability is None:
            raise NotAuthorizedError(registry, loan_id, "no liability for loan")
        if not liability.is_claimed:
            raise NotClaimedError(registry, loan_id)

        try:
            self._ledger(registry).transfer(self.cosigner_address, to, loan_id)
        except PermissionError as exc:
            raise NotAuthorizedError(registry, loan_id, str(exc)) from exc

        logger.info("loan_transferred", extra={"loan": str(loan_id), "to": to})
        self._recorder.emit(
            EventName.TRANSFER_LOAN,
            sender,
            registry=registry,
            loan_id=loan_id,
            to=to,
        )

    def withdraw_partial(self, sender: str, token_address: str, to: str, amount: int) -> int:
        """
        Sweep ``amount`` of the cosigner's own balance of a token.

        Raises:
            FieldOutOfRangeError: ``amount`` is negative or wider than uint256.
            InsufficientFundsError: ``amount`` exceeds the cosigner's balance.
        """
        sender, to = self._authorize(sender, to)
        self._require_amount(amount)
        token_address = to_address(token_address)
        token = self._directory.token(token_address)

        available = token.balance_of(self.cosigner_address)
        if amount > available or not token.transfer(self.cosigner_address, to, amount):
            raise InsufficientFundsError(token_address, self.cosigner_address, amount, available)

        logger.info(
            "tokens_withdrawn",
            extra={"token": token_address, "to": to, "amount": str(amount)},
        )
        self._recorder.emit(
            EventName.WITHDRAW_PARTIAL,
            sender,
            token=token_address,
            to=to,
            amount=amount,
        )
        return amount
