"""
In-memory collaborators for cosigner tests.

Each fake implements one protocol from cosigner_kernel.domain.interfaces
and records what the cosigner asked of it, so tests can assert that a
refused operation moved nothing.
"""

from __future__ import annotations

from collections.abc import Sequence

from eth_account import Account

from cosigner_kernel.domain.addresses import NULL_ADDRESS, to_address
from cosigner_kernel.domain.interfaces import PaymentStatus

# Fixed Unix time every test starts at
NOW = 1_700_000_000

COSIGNER = to_address("0x" + "c0" * 20)
OWNER = to_address("0x" + "0a" * 20)
LENDER = to_address("0x" + "1e" * 20)
STRANGER = to_address("0x" + "5a" * 20)
TREASURY = to_address("0x" + "7e" * 20)
REGISTRY = to_address("0x" + "ab" * 20)
OTHER_REGISTRY = to_address("0x" + "cd" * 20)
TOKEN = to_address("0x" + "70" * 20)
ORACLE = to_address("0x" + "0c" * 20)

DELEGATE_KEY = "0x" + "4c" * 32
DELEGATE = Account.from_key(DELEGATE_KEY).address
OUTSIDER_KEY = "0x" + "3d" * 32
OUTSIDER = Account.from_key(OUTSIDER_KEY).address


class FakeToken:
    """Settlement token with a balance map."""

    def __init__(self, address: str):
        self.address = to_address(address)
        self.balances: dict[str, int] = {}
        self.transfers: list[tuple[str, str, int]] = []

    def mint(self, holder: str, amount: int) -> None:
        holder = to_address(holder)
        self.balances[holder] = self.balances.get(holder, 0) + amount

    def balance_of(self, holder: str) -> int:
        return self.balances.get(to_address(holder), 0)

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        sender, to = to_address(sender), to_address(to)
        if self.balance_of(sender) < amount:
            return False
        self.balances[sender] -= amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self.transfers.append((sender, to, amount))
        return True


class FakeRateOracle:
    """Oracle returning a fixed rate; rejects data other than ``accepted_data``."""

    def __init__(
        self,
        address: str,
        numerator: int,
        denominator: int,
        accepted_data: bytes | None = None,
    ):
        self.address = to_address(address)
        self.numerator = numerator
        self.denominator = denominator
        self.accepted_data = accepted_data
        self.reads: list[bytes] = []

    def read_sample(self, oracle_data: bytes) -> tuple[int, int]:
        self.reads.append(oracle_data)
        if self.accepted_data is not None and oracle_data != self.accepted_data:
            raise ValueError("unsigned rate")
        return self.numerator, self.denominator


class FakeLoanLedger:
    """Debt ledger holding collateral-token owners and per-loan proceeds."""

    def __init__(self, proceeds_token: FakeToken):
        self.proceeds_token = proceeds_token
        self.owners: dict[int, str] = {}
        self.approvals: dict[int, set[str]] = {}
        self.statuses: dict[int, PaymentStatus] = {}
        self.accrued: dict[int, int] = {}
        self.withdrawals: list[tuple[int, str, int]] = []

    # setup helpers

    def register(self, loan_id: int, owner: str, due_time: int, is_paid: bool = False) -> None:
        self.owners[loan_id] = to_address(owner)
        self.statuses[loan_id] = PaymentStatus(due_time=due_time, is_paid=is_paid)

    def approve(self, loan_id: int, operator: str) -> None:
        self.approvals.setdefault(loan_id, set()).add(to_address(operator))

    def mark_paid(self, loan_id: int) -> None:
        status = self.statuses[loan_id]
        self.statuses[loan_id] = PaymentStatus(due_time=status.due_time, is_paid=True)

    def accrue(self, loan_id: int, amount: int) -> None:
        self.accrued[loan_id] = self.accrued.get(loan_id, 0) + amount

    # LoanLedger

    def owner_of(self, loan_id: int) -> str:
        return self.owners.get(loan_id, NULL_ADDRESS)

    def can_transfer(self, operator: str, loan_id: int) -> bool:
        operator = to_address(operator)
        return operator == self.owner_of(loan_id) or operator in self.approvals.get(loan_id, set())

    def transfer_from(self, operator: str, from_: str, to: str, loan_id: int) -> bool:
        if self.owner_of(loan_id) != to_address(from_) or not self.can_transfer(operator, loan_id):
            return False
        self.owners[loan_id] = to_address(to)
        self.approvals.pop(loan_id, None)
        return True

    def transfer(self, sender: str, to: str, loan_id: int) -> None:
        self._require_owner(sender, loan_id)
        self.owners[loan_id] = to_address(to)
        self.approvals.pop(loan_id, None)

    def payment_status(self, loan_id: int) -> PaymentStatus:
        return self.statuses[loan_id]

    def accrued_balance(self, loan_id: int) -> int:
        return self.accrued.get(loan_id, 0)

    def withdraw(self, sender: str, loan_id: int, to: str) -> int:
        self._require_owner(sender, loan_id)
        return self._pay_out(loan_id, to, self.accrued_balance(loan_id))

    def withdraw_partial(self, sender: str, loan_id: int, to: str, amount: int) -> None:
        self._require_owner(sender, loan_id)
        if amount > self.accrued_balance(loan_id):
            raise ValueError("amount exceeds proceeds")
        self._pay_out(loan_id, to, amount)

    def withdraw_batch(self, sender: str, loan_ids: Sequence[int], to: str) -> int:
        for loan_id in loan_ids:
            self._require_owner(sender, loan_id)
        return sum(self._pay_out(loan_id, to, self.accrued_balance(loan_id)) for loan_id in loan_ids)

    def _require_owner(self, sender: str, loan_id: int) -> None:
        if self.owner_of(loan_id) != to_address(sender):
            raise PermissionError(f"{sender} does not own loan {loan_id}")

    def _pay_out(self, loan_id: int, to: str, amount: int) -> int:
        self.accrued[loan_id] = self.accrued_balance(loan_id) - amount
        self.proceeds_token.mint(to, amount)
        self.withdrawals.append((loan_id, to_address(to), amount))
        return amount


class FakeLoanRegistry:
    """Loan registry that records cosign callbacks."""

    def __init__(self, address: str, ledger: FakeLoanLedger, accept_cosign: bool = True):
        self.address = to_address(address)
        self.ledger = ledger
        self.accept_cosign = accept_cosign
        self.obligations: dict[int, int] = {}
        self.oracles: dict[int, str] = {}
        self.cosign_calls: list[tuple[int, int]] = []

    def cosign(self, loan_id: int, cost: int) -> bool:
        self.cosign_calls.append((loan_id, cost))
        return self.accept_cosign

    def closing_obligation(self, loan_id: int) -> int:
        return self.obligations[loan_id]

    def oracle_of(self, loan_id: int) -> str:
        return self.oracles.get(loan_id, NULL_ADDRESS)
