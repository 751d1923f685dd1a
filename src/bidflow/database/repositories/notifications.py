"""Repository for the notifications container (partitioned by /user_id)."""

from __future__ import annotations

from bidflow.database.repositories.base import BaseRepository
from bidflow.models.notification import Notification


class NotificationRepository(BaseRepository[Notification]):
    container_name = "notifications"
    model_class = Notification

    async def list_for_user(self, user_id: str) -> list[Notification]:
        """Fetch a user's notifications, newest first."""
        return await self.query(
            "SELECT * FROM c WHERE c.user_id = @user_id AND NOT IS_DEFINED(c.deleted_at)"
            " ORDER BY c.created_at DESC",
            [{"name": "@user_id", "value": user_id}],
        )

    async def get_for_user(self, notification_id: str, user_id: str) -> Notification | None:
        return await self.get(notification_id, user_id)
