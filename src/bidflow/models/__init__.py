"""Data models for Cosmos DB document types."""

from bidflow.models.approval import Approval, ApprovalStatus, ReviewDecision, ReviewEntry
from bidflow.models.document import ContentSnapshot, Document, DocumentStatus, VersionRecord
from bidflow.models.notification import Notification
from bidflow.models.user import Actor, Role, User

__all__ = [
    "Actor",
    "Approval",
    "ApprovalStatus",
    "ContentSnapshot",
    "Document",
    "DocumentStatus",
    "Notification",
    "ReviewDecision",
    "ReviewEntry",
    "Role",
    "User",
    "VersionRecord",
]
