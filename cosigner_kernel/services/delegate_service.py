"""
DelegateService -- owner-managed allow-list of authorization signers.

Add and remove are idempotent: adding an active delegate or removing an
address that is not one changes nothing and emits nothing.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from cosigner_kernel.domain.addresses import to_address
from cosigner_kernel.logging_config import get_logger
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.models.delegate import Delegate
from cosigner_kernel.services.base import BaseService
from cosigner_kernel.services.event_recorder import EventRecorder
from cosigner_kernel.services.ownership_service import OwnershipService

logger = get_logger("services.delegates")


class DelegateService(BaseService[Delegate]):
    """Maintains the delegate set."""

    def __init__(
        self,
        session: Session,
        ownership: OwnershipService,
        recorder: EventRecorder,
    ):
        super().__init__(session)
        self._ownership = ownership
        self._recorder = recorder

    def _find(self, address: str) -> Delegate | None:
        stmt = select(Delegate).where(Delegate.address == address)
        return self.session.execute(stmt).scalar_one_or_none()

    def is_delegate(self, address: str) -> bool:
        delegate = self._find(to_address(address))
        return delegate is not None and delegate.is_active

    def list_delegates(self) -> list[str]:
        """Active delegate addresses, sorted."""
        stmt = (
            select(Delegate.address)
            .where(Delegate.is_active == True)  # noqa: E712
            .order_by(Delegate.address)
        )
        return list(self.session.execute(stmt).scalars().all())

    def add_delegate(self, sender: str, address: str) -> bool:
        """
        Allow ``address`` to sign authorizations.

        Returns:
            True if the delegate set changed.
        """
        self._ownership.require_owner(sender)
        sender = to_address(sender)
        address = to_address(address)

        delegate = self._find(address)
        if delegate is not None and delegate.is_active:
            return False
        if delegate is None:
            self.session.add(Delegate(address=address, is_active=True, created_by=sender))
        else:
            delegate.is_active = True
            delegate.updated_by = sender
        self.session.flush()

        logger.info("delegate_added", extra={"delegate": address})
        self._recorder.emit(EventName.DELEGATE_ADDED, sender, delegate=address)
        return True

    def remove_delegate(self, sender: str, address: str) -> bool:
        """
        Revoke ``address``.

        Returns:
            True if the delegate set changed.
        """
        self._ownership.require_owner(sender)
        sender = to_address(sender)
        address = to_address(address)

        delegate = self._find(address)
        if delegate is None or not delegate.is_active:
            return False
        delegate.is_active = False
        delegate.updated_by = sender
        self.session.flush()

        logger.info("delegate_removed", extra={"delegate": address})
        self._recorder.emit(EventName.DELEGATE_REMOVED, sender, delegate=address)
        return True
