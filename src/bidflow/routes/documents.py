"""Document routes: create, revise, review, and read documents and their versions."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import HTMLResponse

from bidflow.auth.middleware import require_actor
from bidflow.models.document import Document
from bidflow.models.user import Actor
from bidflow.routes.dependencies import get_service
from bidflow.routes.schemas import (
    ApprovalOut,
    CreateDocumentRequest,
    CreateFromSourceRequest,
    DocumentOut,
    ReviewRequest,
    UpdateSectionRequest,
    VersionOut,
    VersionSummaryOut,
)
from bidflow.services.documents import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])

ActorDep = Annotated[Actor, Depends(require_actor)]
ServiceDep = Annotated[DocumentService, Depends(get_service)]


def _document_out(document: Document) -> DocumentOut:
    out = DocumentOut.model_validate(document)
    out.version_count = len(document.versions)
    return out


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_document(
    body: CreateDocumentRequest, actor: ActorDep, service: ServiceDep
) -> DocumentOut:
    """Generate a new proposal from a project name and details."""
    document = await service.create_document(body.project_name, body.project_details, actor)
    return _document_out(document)


@router.post("/from-source", status_code=status.HTTP_201_CREATED)
async def create_document_from_source(
    body: CreateFromSourceRequest, actor: ActorDep, service: ServiceDep
) -> DocumentOut:
    """Generate a technical proposal from RFQ text."""
    document = await service.create_document_from_source(body.name, body.source_text, actor)
    return _document_out(document)


@router.post("/update-section")
async def update_section(
    body: UpdateSectionRequest, actor: ActorDep, service: ServiceDep
) -> VersionOut:
    """Regenerate one section and store the result as a new version."""
    record = await service.revise_section(
        body.document_id, body.section_name, body.instructions, actor
    )
    return VersionOut.model_validate(record)


@router.get("")
async def list_documents(actor: ActorDep, service: ServiceDep) -> list[DocumentOut]:
    return [_document_out(d) for d in await service.list_documents(actor)]


@router.get("/{document_id}")
async def get_document(document_id: str, actor: ActorDep, service: ServiceDep) -> DocumentOut:
    return _document_out(await service.get_document(document_id, actor))


@router.get("/{document_id}/versions")
async def list_versions(
    document_id: str, actor: ActorDep, service: ServiceDep
) -> list[VersionSummaryOut]:
    versions = await service.list_versions(document_id, actor)
    return [VersionSummaryOut.model_validate(v) for v in versions]


@router.get("/{document_id}/versions/{version_number}")
async def get_version(
    document_id: str, version_number: int, actor: ActorDep, service: ServiceDep
) -> VersionOut:
    """Read a version back from the artifact store."""
    record = await service.get_version_content(document_id, version_number, actor)
    return VersionOut.model_validate(record)


@router.get("/{document_id}/render", response_class=HTMLResponse)
async def render_document(document_id: str, actor: ActorDep, service: ServiceDep) -> HTMLResponse:
    """Render the latest version as an HTML page."""
    return HTMLResponse(await service.render_latest(document_id, actor))


@router.get("/{document_id}/approval")
async def get_approval(document_id: str, actor: ActorDep, service: ServiceDep) -> ApprovalOut:
    return ApprovalOut.model_validate(await service.get_approval(document_id, actor))


@router.post("/{document_id}/submit")
async def submit_document(document_id: str, actor: ActorDep, service: ServiceDep) -> ApprovalOut:
    """Submit the document for review, starting a new review round."""
    return ApprovalOut.model_validate(await service.submit_for_review(document_id, actor))


@router.post("/{document_id}/review")
async def review_document(
    document_id: str, body: ReviewRequest, actor: ActorDep, service: ServiceDep
) -> ApprovalOut:
    """Record the caller's review decision for the current round."""
    approval = await service.record_review(document_id, actor, body.decision, body.comments)
    return ApprovalOut.model_validate(approval)
