"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from bidflow.services.documents import DocumentService


def get_service(request: Request) -> DocumentService:
    return request.app.state.service
