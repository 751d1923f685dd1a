"""Business logic: version chain, review workflow and document orchestration."""

from bidflow.services.access import Capability, authorize
from bidflow.services.approvals import ReviewWorkflow
from bidflow.services.documents import DocumentService
from bidflow.services.notifications import NotificationService
from bidflow.services.versions import VersionChainManager

__all__ = [
    "Capability",
    "DocumentService",
    "NotificationService",
    "ReviewWorkflow",
    "VersionChainManager",
    "authorize",
]
