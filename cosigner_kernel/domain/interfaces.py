"""
Interfaces -- narrow capabilities the cosigner consumes from its collaborators.

The loan registry, debt ledger, rate oracles and tokens are external systems
of record.  The kernel reaches them only through these protocols and never
duplicates their bookkeeping.  ``ContractDirectory`` resolves the addresses
that appear in requests to live collaborator objects.

Failure contract for implementations:
    - Return ``False`` from boolean transfer methods when the transfer is
      refused (not approved, balance short).
    - Raise ``PermissionError`` when the caller lacks the ownership an
      operation requires.
    - Raise ``ValueError`` from ``RateOracle.read_sample`` to reject data.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cosigner_kernel.domain.addresses import to_address
from cosigner_kernel.exceptions import UnknownContractError


@dataclass(frozen=True, slots=True)
class PaymentStatus:
    """Repayment state of a loan as reported by the debt ledger."""

    due_time: int
    is_paid: bool


@runtime_checkable
class SettlementToken(Protocol):
    """Fungible token with balances held per address."""

    address: str

    def balance_of(self, holder: str) -> int:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to``; False if refused."""
        ...


@runtime_checkable
class RateOracle(Protocol):
    """Converts a foreign currency into settlement-token units."""

    address: str

    def read_sample(self, oracle_data: bytes) -> tuple[int, int]:
        """Return the rate as (numerator, denominator).

        Raises:
            ValueError: If the oracle rejects ``oracle_data``.
        """
        ...


@runtime_checkable
class LoanLedger(Protocol):
    """Debt ledger: collateral-token ownership and per-loan proceeds."""

    def owner_of(self, loan_id: int) -> str:
        ...

    def can_transfer(self, operator: str, loan_id: int) -> bool:
        """True if ``operator`` owns or is approved to move the loan."""
        ...

    def transfer_from(self, operator: str, from_: str, to: str, loan_id: int) -> bool:
        """Authorized transfer of the collateral token; False if refused."""
        ...

    def transfer(self, sender: str, to: str, loan_id: int) -> None:
        """Owner transfer of the collateral token.

        Raises:
            PermissionError: If ``sender`` does not own the loan.
        """
        ...

    def payment_status(self, loan_id: int) -> PaymentStatus:
        ...

    def accrued_balance(self, loan_id: int) -> int:
        """Proceeds collected for the loan and not yet withdrawn."""
        ...

    def withdraw(self, sender: str, loan_id: int, to: str) -> int:
        """Withdraw all proceeds of the loan; returns the amount moved."""
        ...

    def withdraw_partial(self, sender: str, loan_id: int, to: str, amount: int) -> None:
        ...

    def withdraw_batch(self, sender: str, loan_ids: Sequence[int], to: str) -> int:
        """Withdraw all proceeds of every loan; returns the total moved."""
        ...


@runtime_checkable
class LoanRegistry(Protocol):
    """Loan registry that originates loans and invokes the cosigner."""

    address: str
    ledger: LoanLedger

    def cosign(self, loan_id: int, cost: int) -> bool:
        """Fee callback made during ``request_cosign``; False rejects it."""
        ...

    def closing_obligation(self, loan_id: int) -> int:
        """Outstanding amount of the loan, in the loan's currency."""
        ...

    def oracle_of(self, loan_id: int) -> str:
        """Rate oracle of the loan's currency; the null address for the token."""
        ...


class ContractDirectory:
    """Resolves collaborator addresses to the objects that serve them."""

    def __init__(
        self,
        registries: Iterable[LoanRegistry] = (),
        oracles: Iterable[RateOracle] = (),
        tokens: Iterable[SettlementToken] = (),
    ):
        self._registries: dict[str, LoanRegistry] = {}
        self._oracles: dict[str, RateOracle] = {}
        self._tokens: dict[str, SettlementToken] = {}
        for registry in registries:
            self.add_registry(registry)
        for oracle in oracles:
            self.add_oracle(oracle)
        for token in tokens:
            self.add_token(token)

    def add_registry(self, registry: LoanRegistry) -> None:
        self._registries[to_address(registry.address)] = registry

    def add_oracle(self, oracle: RateOracle) -> None:
        self._oracles[to_address(oracle.address)] = oracle

    def add_token(self, token: SettlementToken) -> None:
        self._tokens[to_address(token.address)] = token

    def registry(self, address: str) -> LoanRegistry:
        return self._lookup(self._registries, "registry", address)

    def oracle(self, address: str) -> RateOracle:
        return self._lookup(self._oracles, "oracle", address)

    def token(self, address: str) -> SettlementToken:
        return self._lookup(self._tokens, "token", address)

    @staticmethod
    def _lookup(table: dict, kind: str, address: str):
        try:
            return table[to_address(address)]
        except (KeyError, ValueError):
            raise UnknownContractError(kind, address) from None
