"""Admin routes for browsing and cleaning up the artifact store."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from bidflow.auth.middleware import require_actor
from bidflow.models.user import Actor
from bidflow.routes.dependencies import get_service
from bidflow.routes.schemas import ArtifactOut
from bidflow.services.documents import DocumentService

router = APIRouter(prefix="/artifacts", tags=["artifacts"])

ActorDep = Annotated[Actor, Depends(require_actor)]
ServiceDep = Annotated[DocumentService, Depends(get_service)]


@router.get("")
async def list_artifacts(
    actor: ActorDep, service: ServiceDep, folder: Annotated[str, Query()] = ""
) -> list[ArtifactOut]:
    items = await service.list_artifacts(folder, actor)
    return [ArtifactOut.model_validate(item) for item in items]


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_artifact(
    actor: ActorDep, service: ServiceDep, path: Annotated[str, Query(min_length=1)]
) -> Response:
    """Delete a file or folder that no version record references."""
    await service.delete_artifact(path, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
