"""Notification fan-out and the per-user inbox."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError

from bidflow.errors import NotificationNotFound
from bidflow.models.notification import Notification

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bidflow.database.repositories.notifications import NotificationRepository
    from bidflow.database.repositories.users import UserRepository
    from bidflow.models.user import Actor, Role

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates notifications for state changes and serves each user's inbox.

    Delivery is best-effort: a failed write is logged and never fails the
    transition that triggered it.
    """

    def __init__(
        self,
        notifications_repo: NotificationRepository,
        users_repo: UserRepository,
    ) -> None:
        self._notifications = notifications_repo
        self._users = users_repo

    async def notify(self, user_ids: Iterable[str], document_id: str, text: str) -> int:
        """Create one notification per distinct user. Returns how many were written."""
        sent = 0
        for user_id in dict.fromkeys(user_ids):
            try:
                await self._notifications.create(
                    Notification(user_id=user_id, document_id=document_id, text=text)
                )
            except AzureError:
                logger.warning(
                    "Notification not delivered: user=%s document=%s",
                    user_id,
                    document_id,
                    exc_info=True,
                )
                continue
            sent += 1
        logger.info("Notifications sent: document=%s count=%d", document_id, sent)
        return sent

    async def notify_all(self, document_id: str, text: str) -> int:
        try:
            users = await self._users.list_all()
        except AzureError:
            logger.warning("User directory unavailable: document=%s", document_id, exc_info=True)
            return 0
        return await self.notify((u.id for u in users), document_id, text)

    async def notify_role(self, role: Role, document_id: str, text: str) -> int:
        try:
            users = await self._users.list_by_role(role)
        except AzureError:
            logger.warning(
                "User directory unavailable: role=%s document=%s",
                role,
                document_id,
                exc_info=True,
            )
            return 0
        return await self.notify((u.id for u in users), document_id, text)

    async def list_for(self, actor: Actor) -> list[Notification]:
        return await self._notifications.list_for_user(actor.id)

    async def _owned(self, notification_id: str, actor: Actor) -> Notification:
        notification = await self._notifications.get_for_user(notification_id, actor.id)
        if notification is None:
            raise NotificationNotFound(f"Notification not found: {notification_id}")
        return notification

    async def mark_read(self, notification_id: str, actor: Actor) -> Notification:
        notification = await self._owned(notification_id, actor)
        if not notification.read:
            notification.read = True
            await self._notifications.update(notification, notification.user_id)
        return notification

    async def delete(self, notification_id: str, actor: Actor) -> None:
        notification = await self._owned(notification_id, actor)
        await self._notifications.soft_delete(notification, notification.user_id)
        logger.info("Notification deleted: id=%s user=%s", notification_id, actor.id)
