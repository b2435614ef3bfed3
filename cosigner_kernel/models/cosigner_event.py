"""
Module: cosigner_kernel.models.cosigner_event
Responsibility: Append-only log of the observations the cosigner emits
    (cosigns, claims, withdrawals, configuration changes) for off-chain
    auditability.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - seq is unique and strictly increasing in emission order.
    - Rows are written by EventRecorder only and never updated.  A rolled
      back operation leaves no event behind.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cosigner_kernel.db.base import Base


class EventName(str, Enum):
    """Observation names."""

    COSIGN = "Cosign"
    CLAIM = "Claim"
    RECEIVED = "Received"
    SET_URL = "SetUrl"
    DELEGATE_ADDED = "DelegateAdded"
    DELEGATE_REMOVED = "DelegateRemoved"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
    WITHDRAW_FROM_LOAN = "WithdrawFromLoan"
    WITHDRAW_PARTIAL_FROM_LOAN = "WithdrawPartialFromLoan"
    WITHDRAW_BATCH_LOANS = "WithdrawBatchLoans"
    TRANSFER_LOAN = "TransferLoan"
    WITHDRAW_PARTIAL = "WithdrawPartial"


class CosignerEvent(Base):
    """One emitted observation."""

    __tablename__ = "cosigner_events"

    __table_args__ = (
        Index("idx_cosigner_event_name", "name"),
        Index("idx_cosigner_event_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    name: Mapped[EventName] = mapped_column(
        String(50),
        nullable=False,
    )

    # Address that triggered the observation
    actor: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Integers are stored as decimal strings, bytes as 0x-hex
    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CosignerEvent #{self.seq} {self.name}>"
