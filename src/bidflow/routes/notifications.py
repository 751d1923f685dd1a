"""Notification routes: the caller's inbox."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from bidflow.auth.middleware import require_actor
from bidflow.models.user import Actor
from bidflow.routes.dependencies import get_service
from bidflow.routes.schemas import NotificationOut
from bidflow.services.documents import DocumentService

router = APIRouter(prefix="/notifications", tags=["notifications"])

ActorDep = Annotated[Actor, Depends(require_actor)]
ServiceDep = Annotated[DocumentService, Depends(get_service)]


@router.get("")
async def list_notifications(actor: ActorDep, service: ServiceDep) -> list[NotificationOut]:
    """List the caller's notifications, newest first."""
    return [NotificationOut.model_validate(n) for n in await service.list_notifications(actor)]


@router.put("/{notification_id}")
async def mark_read(notification_id: str, actor: ActorDep, service: ServiceDep) -> NotificationOut:
    notification = await service.mark_notification_read(notification_id, actor)
    return NotificationOut.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str, actor: ActorDep, service: ServiceDep
) -> Response:
    await service.delete_notification(notification_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
