"""ORM models for the cosigner kernel."""

from cosigner_kernel.models.cosigner_event import CosignerEvent, EventName
from cosigner_kernel.models.cosigner_settings import CosignerSettings
from cosigner_kernel.models.delegate import Delegate
from cosigner_kernel.models.liability import Liability, LiabilityStatus

__all__ = [
    "CosignerEvent",
    "CosignerSettings",
    "Delegate",
    "EventName",
    "Liability",
    "LiabilityStatus",
]
