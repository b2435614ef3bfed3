"""
Module: cosigner_kernel.models.cosigner_settings
Responsibility: Owner and descriptive metadata of the cosigner.  Exactly one
    row per cosigner address; every owner-gated operation reads it.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - cosigner_address is unique and never changes.
    - owner_address and url change only through OwnershipService.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cosigner_kernel.db.base import TrackedBase


class CosignerSettings(TrackedBase):
    """Owner and metadata URL of one cosigner."""

    __tablename__ = "cosigner_settings"

    __table_args__ = (
        UniqueConstraint("cosigner_address", name="uq_cosigner_address"),
    )

    cosigner_address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    owner_address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    url: Mapped[str] = mapped_column(
        String(4000),
        nullable=False,
        default="",
    )

    def __repr__(self) -> str:
        return f"<CosignerSettings {self.cosigner_address} owner={self.owner_address}>"
