"""Document service: orchestrates generation, versioning and review."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError

from bidflow.errors import (
    AlreadyFinalized,
    DocumentNotFound,
    InputValidationError,
    InvalidTransition,
    VersionNotFound,
)
from bidflow.models.document import ContentSnapshot, Document
from bidflow.models.user import Role
from bidflow.services.access import CREATE_ROLES, Capability, authorize, can, require_role

if TYPE_CHECKING:
    from bidflow.database.repositories.documents import DocumentRepository
    from bidflow.generation.adapter import GenerationProvider
    from bidflow.models.approval import Approval, ReviewDecision
    from bidflow.models.document import VersionRecord
    from bidflow.models.notification import Notification
    from bidflow.models.user import Actor
    from bidflow.services.approvals import ReviewWorkflow
    from bidflow.services.notifications import NotificationService
    from bidflow.services.versions import VersionChainManager
    from bidflow.storage import ArtifactItem, ArtifactStore
    from bidflow.storage.renderer import DocumentRenderer

logger = logging.getLogger(__name__)

TECHNICAL_PROPOSAL_SECTION = "Technical Proposal"
CRITIQUE_FILE_NAME = "review-1.html"


def _require_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise InputValidationError(f"{field} is required")
    return value


class DocumentService:
    """Entry point for every document operation exposed by the API.

    Generation always completes before anything is written, so a provider
    failure leaves no folder, artifact or record behind.
    """

    def __init__(
        self,
        documents_repo: DocumentRepository,
        generator: GenerationProvider,
        store: ArtifactStore,
        versions: VersionChainManager,
        workflow: ReviewWorkflow,
        notifications: NotificationService,
        renderer: DocumentRenderer,
        *,
        model: str = "",
        auto_review: bool = False,
    ) -> None:
        self._documents = documents_repo
        self._generator = generator
        self._store = store
        self._versions = versions
        self._workflow = workflow
        self._notifications = notifications
        self._renderer = renderer
        self._model = model
        self._auto_review = auto_review

    async def _load(self, document_id: str) -> Document:
        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise DocumentNotFound(f"Document not found: {document_id}")
        return await self._workflow.reconcile(document)

    async def _persist_new(
        self,
        name: str,
        content: ContentSnapshot,
        creator: Actor,
        extra_artifacts: dict[str, str] | None = None,
    ) -> Document:
        document = Document(name=name, creator_id=creator.id, model=self._model)
        folder = await self._store.create_folder(document.id)
        document.artifact_folder = folder.name
        await self._versions.create_initial_version(document, content)
        for file_name, data in (extra_artifacts or {}).items():
            await self._store.put_file(folder.name, file_name, data)

        await self._documents.create(document)
        try:
            await self._workflow.create(document)
        except AzureError:
            logger.warning("Approval not created, removing document: id=%s", document.id)
            await self._documents.delete(document.id, document.id)
            raise
        logger.info(
            "Document created: id=%s creator=%s sections=%d",
            document.id,
            creator.id,
            len(content.sections),
        )
        return document

    async def create_document(
        self, project_name: str, project_details: str, creator: Actor
    ) -> Document:
        """Generate a new proposal (summary, plan, then each section) and store version 1."""
        require_role(creator, CREATE_ROLES, "create documents")
        project_name = _require_text(project_name, "projectName")
        project_details = _require_text(project_details, "projectDetails")

        plan = await self._generator.summarize_and_plan(project_name, project_details)
        sections: dict[str, str] = {}
        for title in plan.sections:
            sections[title] = await self._generator.generate_section(
                project_name, plan.summary, project_details, title
            )
        content = ContentSnapshot(
            project_name=project_name, summary=plan.summary, sections=sections
        )
        return await self._persist_new(project_name, content, creator)

    async def create_document_from_source(
        self, name: str, source_text: str, creator: Actor
    ) -> Document:
        """Generate a technical proposal from RFQ text, optionally with a critique."""
        require_role(creator, CREATE_ROLES, "create documents")
        name = _require_text(name, "name")
        source_text = _require_text(source_text, "sourceText")

        proposal = await self._generator.generate_from_document(source_text)
        extra: dict[str, str] = {}
        if self._auto_review:
            extra[CRITIQUE_FILE_NAME] = await self._generator.critique(proposal)
        content = ContentSnapshot(
            project_name=name, sections={TECHNICAL_PROPOSAL_SECTION: proposal}
        )
        return await self._persist_new(name, content, creator, extra)

    async def revise_section(
        self, document_id: str, section_name: str, instructions: str, actor: Actor
    ) -> VersionRecord:
        document = await self._load(document_id)
        authorize(actor, document, Capability.REVISE)
        if document.status.is_terminal:
            raise AlreadyFinalized(f"Document {document_id} is already {document.status}")
        instructions = _require_text(instructions, "instructions")
        return await self._versions.update_section(document_id, section_name, instructions)

    async def submit_for_review(self, document_id: str, actor: Actor) -> Approval:
        return await self._workflow.submit(await self._load(document_id), actor)

    async def record_review(
        self,
        document_id: str,
        actor: Actor,
        decision: ReviewDecision,
        comments: str = "",
    ) -> Approval:
        document = await self._load(document_id)
        return await self._workflow.review(document, actor, decision, comments)

    async def get_document(self, document_id: str, actor: Actor) -> Document:
        document = await self._load(document_id)
        authorize(actor, document, Capability.READ)
        return document

    async def list_documents(self, actor: Actor) -> list[Document]:
        """All documents the actor may read, most recently modified first."""
        documents = await self._documents.list_all()
        return [d for d in documents if can(actor, d, Capability.READ)]

    async def list_versions(self, document_id: str, actor: Actor) -> list[VersionRecord]:
        document = await self.get_document(document_id, actor)
        return sorted(document.versions, key=lambda v: v.version_number)

    async def get_version_content(
        self, document_id: str, version_number: int, actor: Actor
    ) -> VersionRecord:
        await self.get_document(document_id, actor)
        return await self._versions.read_version_artifact(document_id, version_number)

    async def render_latest(self, document_id: str, actor: Actor) -> str:
        document = await self.get_document(document_id, actor)
        latest = document.latest_version
        if latest is None:
            raise VersionNotFound(f"Document {document_id} has no versions")
        return self._renderer.render(document, latest)

    async def get_approval(self, document_id: str, actor: Actor) -> Approval:
        await self.get_document(document_id, actor)
        return await self._workflow.get(document_id)

    async def list_notifications(self, actor: Actor) -> list[Notification]:
        return await self._notifications.list_for(actor)

    async def mark_notification_read(self, notification_id: str, actor: Actor) -> Notification:
        return await self._notifications.mark_read(notification_id, actor)

    async def delete_notification(self, notification_id: str, actor: Actor) -> None:
        await self._notifications.delete(notification_id, actor)

    async def list_artifacts(self, folder: str, actor: Actor) -> list[ArtifactItem]:
        require_role(actor, frozenset({Role.ADMIN}), "browse artifacts")
        return await self._store.list_children(folder)

    async def delete_artifact(self, path: str, actor: Actor) -> None:
        """Delete an artifact that no version record points at."""
        require_role(actor, frozenset({Role.ADMIN}), "delete artifacts")
        path = _require_text(path, "path").strip("/")
        folder, _, file_name = path.partition("/")
        owner = await self._documents.get_by_artifact_folder(folder)
        if owner is not None and (
            not file_name or any(v.version_id == file_name for v in owner.versions)
        ):
            raise InvalidTransition(f"Artifact {path} belongs to document {owner.id}")
        await self._store.delete_item(path)
        logger.info("Artifact deleted: path=%s actor=%s", path, actor.id)
