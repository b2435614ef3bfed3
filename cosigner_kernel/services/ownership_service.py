"""
OwnershipService -- owner identity and descriptive metadata of the cosigner.

Responsibility:
    Creates the single ``CosignerSettings`` row, answers "who is the owner",
    gates owner-only operations and mutates the owner address and the
    metadata URL.

Invariants enforced:
    - Only the current owner may change the owner or the URL.
    - The owner can never be the null address.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from cosigner_kernel.domain.addresses import is_null_address, is_same_address, to_address
from cosigner_kernel.exceptions import (
    CosignerNotInitializedError,
    InvalidDestinationError,
    NotOwnerError,
)
from cosigner_kernel.logging_config import get_logger
from cosigner_kernel.models.cosigner_event import EventName
from cosigner_kernel.models.cosigner_settings import CosignerSettings
from cosigner_kernel.services.base import BaseService
from cosigner_kernel.services.event_recorder import EventRecorder

logger = get_logger("services.ownership")


@dataclass(frozen=True)
class SettingsInfo:
    """Immutable DTO for cosigner settings."""

    cosigner_address: str
    owner_address: str
    url: str


class OwnershipService(BaseService[CosignerSettings]):
    """Owner gate and metadata for one cosigner."""

    def __init__(self, session: Session, cosigner_address: str, recorder: EventRecorder):
        super().__init__(session)
        self.cosigner_address = to_address(cosigner_address)
        self._recorder = recorder

    def _to_dto(self, settings: CosignerSettings) -> SettingsInfo:
        return SettingsInfo(
            cosigner_address=settings.cosigner_address,
            owner_address=settings.owner_address,
            url=settings.url,
        )

    def _find(self) -> CosignerSettings | None:
        stmt = select(CosignerSettings).where(
            CosignerSettings.cosigner_address == self.cosigner_address
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _get(self) -> CosignerSettings:
        settings = self._find()
        if settings is None:
            raise CosignerNotInitializedError(self.cosigner_address)
        return settings

    def is_initialized(self) -> bool:
        return self._find() is not None

    def initialize(self, owner: str, url: str = "") -> SettingsInfo:
        """
        Create the settings row.  Returns the existing row unchanged when
        the cosigner was already initialized.
        """
        existing = self._find()
        if existing is not None:
            return self._to_dto(existing)
        if is_null_address(owner):
            raise InvalidDestinationError(owner)

        owner = to_address(owner)
        settings = CosignerSettings(
            cosigner_address=self.cosigner_address,
            owner_address=owner,
            url=url,
            created_by=owner,
        )
        self.session.add(settings)
        self.session.flush()

        logger.info(
            "cosigner_initialized",
            extra={"cosigner": self.cosigner_address, "owner": owner},
        )
        return self._to_dto(settings)

    def get_settings(self) -> SettingsInfo:
        return self._to_dto(self._get())

    def owner(self) -> str:
        return self._get().owner_address

    def url(self) -> str:
        return self._get().url

    def require_owner(self, sender: str) -> None:
        """
        Raises:
            NotOwnerError: If ``sender`` is not the cosigner owner.
        """
        owner = self.owner()
        if not is_same_address(sender, owner):
            logger.warning(
                "owner_check_failed",
                extra={"sender": sender, "owner": owner},
            )
            raise NotOwnerError(sender, owner)

    def set_url(self, sender: str, url: str) -> SettingsInfo:
        self.require_owner(sender)
        settings = self._get()
        settings.url = url
        settings.updated_by = to_address(sender)
        self.session.flush()

        self._recorder.emit(EventName.SET_URL, to_address(sender), url=url)
        return self._to_dto(settings)

    def transfer_ownership(self, sender: str, new_owner: str) -> SettingsInfo:
        self.require_owner(sender)
        if is_null_address(new_owner):
            raise InvalidDestinationError(new_owner)

        settings = self._get()
        previous = settings.owner_address
        settings.owner_address = to_address(new_owner)
        settings.updated_by = previous
        self.session.flush()

        self._recorder.emit(
            EventName.OWNERSHIP_TRANSFERRED,
            previous,
            previous_owner=previous,
            new_owner=settings.owner_address,
        )
        return self._to_dto(settings)
