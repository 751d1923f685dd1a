"""Repository modules for each Cosmos DB container."""

from bidflow.database.repositories.approvals import ApprovalRepository
from bidflow.database.repositories.base import StaleItemError
from bidflow.database.repositories.documents import DocumentRepository
from bidflow.database.repositories.notifications import NotificationRepository
from bidflow.database.repositories.users import UserRepository

__all__ = [
    "ApprovalRepository",
    "DocumentRepository",
    "NotificationRepository",
    "StaleItemError",
    "UserRepository",
]
