"""
Module: cosigner_kernel.models.liability
Responsibility: ORM persistence for the cosigner's coverage commitment on one
    loan, keyed by (registry address, loan id).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one row per (registry_address, loan_id) (uq_liability_loan).
      The row's existence is what distinguishes Absent from Claimed.
    - coverage is nonzero while ACTIVE and zero once CLAIMED.  It is the
      only field that changes after creation.
    - required_arrears is immutable after creation.

Failure modes:
    - IntegrityError on a duplicate (registry_address, loan_id) insert that
      bypassed LiabilityService's existence check.
"""

from enum import Enum

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cosigner_kernel.db.base import TrackedBase
from cosigner_kernel.db.types import UIntString


class LiabilityStatus(str, Enum):
    """Liability lifecycle.  Absent -> ACTIVE -> CLAIMED, never back."""

    ACTIVE = "active"
    CLAIMED = "claimed"


class Liability(TrackedBase):
    """
    Coverage commitment on one loan.

    Guarantees:
        - coverage is in basis points (0-10000 scale) of the loan's closing
          obligation.
        - claimed_by / claim_amount are set together by a successful claim.
    """

    __tablename__ = "liabilities"

    __table_args__ = (
        UniqueConstraint("registry_address", "loan_id", name="uq_liability_loan"),
        Index("idx_liability_registry", "registry_address"),
    )

    registry_address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    loan_id: Mapped[int] = mapped_column(
        UIntString(),
        nullable=False,
    )

    coverage: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    required_arrears: Mapped[int] = mapped_column(
        UIntString(),
        nullable=False,
    )

    # Delegate whose signature authorized the cosign
    signer: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    # Fee quoted in the authorization, before any currency conversion
    cost: Mapped[int] = mapped_column(
        UIntString(),
        nullable=False,
    )

    claimed_by: Mapped[str | None] = mapped_column(
        String(42),
        nullable=True,
    )

    claim_amount: Mapped[int | None] = mapped_column(
        UIntString(),
        nullable=True,
    )

    @property
    def status(self) -> LiabilityStatus:
        return LiabilityStatus.CLAIMED if self.coverage == 0 else LiabilityStatus.ACTIVE

    @property
    def is_claimed(self) -> bool:
        return self.coverage == 0

    def __repr__(self) -> str:
        return (
            f"<Liability {self.registry_address}#{self.loan_id} "
            f"coverage={self.coverage} ({self.status.value})>"
        )
