"""
Module: cosigner_kernel.models.delegate
Responsibility: ORM persistence for the owner-managed allow-list of
    authorization signers.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per address (uq_delegate_address).  Removal deactivates the
      row instead of deleting it, so the allow-list history stays visible.
    - An address is a valid signer iff its row exists and is_active is True.
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cosigner_kernel.db.base import TrackedBase


class Delegate(TrackedBase):
    """Address allowed to sign cosign authorizations."""

    __tablename__ = "delegates"

    __table_args__ = (
        UniqueConstraint("address", name="uq_delegate_address"),
    )

    address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<Delegate {self.address} ({state})>"
