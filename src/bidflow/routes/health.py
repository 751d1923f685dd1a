"""Health route: liveness of the API and its backing services."""

from __future__ import annotations

import logging

from azure.cosmos.exceptions import CosmosHttpResponseError
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from bidflow.health import check_graph

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


async def _check_cosmos(request: Request) -> bool:
    cosmos = getattr(request.app.state, "cosmos", None)
    if cosmos is None:
        return False
    try:
        await cosmos.database.read()
    except (CosmosHttpResponseError, RuntimeError):
        logger.warning("Cosmos DB health check failed", exc_info=True)
        return False
    return True


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Report ``ok`` when every dependency answers, ``degraded`` otherwise."""
    settings = request.app.state.settings
    checks = {
        "cosmos": await _check_cosmos(request),
        "storage": await check_graph(settings.storage.base_url),
    }
    healthy = all(checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )
