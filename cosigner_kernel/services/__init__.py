"""Session-bound kernel services and the transactional orchestrator."""

from cosigner_kernel.services.cosigner_orchestrator import (
    CosignerOrchestrator,
    CosignerServices,
)
from cosigner_kernel.services.delegate_service import DelegateService
from cosigner_kernel.services.event_recorder import EventInfo, EventRecorder
from cosigner_kernel.services.liability_service import (
    ClaimResult,
    LiabilityInfo,
    LiabilityService,
)
from cosigner_kernel.services.ownership_service import OwnershipService, SettingsInfo
from cosigner_kernel.services.treasury_service import TreasuryService

__all__ = [
    "ClaimResult",
    "CosignerOrchestrator",
    "CosignerServices",
    "DelegateService",
    "EventInfo",
    "EventRecorder",
    "LiabilityInfo",
    "LiabilityService",
    "OwnershipService",
    "SettingsInfo",
    "TreasuryService",
]
