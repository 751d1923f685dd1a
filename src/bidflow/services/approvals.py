"""Review workflow: the approval state machine and its side effects.

    draft -> pending (submitted) -> in_progress -> approved | rejected

Every transition is a compare-and-swap on the approval's etag that bumps
``revision``; a lost race re-reads the approval and re-checks every
precondition. The document's ``status`` mirrors the approval and is only
written when the approval revision is newer than the one last mirrored. A
mirror that fails after the approval committed is logged and repaired by
:meth:`ReviewWorkflow.reconcile`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError

from bidflow.database.repositories.base import StaleItemError
from bidflow.errors import (
    AlreadyFinalized,
    DocumentNotFound,
    DuplicateReview,
    InvalidTransition,
    NotFoundError,
    VersionConflict,
)
from bidflow.models.approval import Approval, ApprovalStatus, ReviewDecision, ReviewEntry
from bidflow.models.user import Role
from bidflow.services.access import Capability, authorize
from bidflow.services.retry import compute_retry_delay

if TYPE_CHECKING:
    from collections.abc import Callable

    from bidflow.database.repositories.approvals import ApprovalRepository
    from bidflow.database.repositories.documents import DocumentRepository
    from bidflow.models.document import Document
    from bidflow.models.user import Actor
    from bidflow.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """Drives approvals through review rounds and notifies the people involved."""

    def __init__(
        self,
        approvals_repo: ApprovalRepository,
        documents_repo: DocumentRepository,
        notifications: NotificationService,
        *,
        quorum: int = 2,
        max_attempts: int = 3,
        retry_base_seconds: float = 0.05,
    ) -> None:
        self._approvals = approvals_repo
        self._documents = documents_repo
        self._notifications = notifications
        self._quorum = max(1, quorum)
        self._max_attempts = max(1, max_attempts)
        self._retry_base = retry_base_seconds

    async def get(self, document_id: str) -> Approval:
        approval = await self._approvals.get_by_document(document_id)
        if approval is None:
            raise NotFoundError(f"Approval not found for document {document_id}")
        return approval

    async def create(self, document: Document) -> Approval:
        """Create the draft approval of a new document and announce it to every user."""
        approval = Approval(document_id=document.id)
        await self._approvals.create(approval)
        logger.info("Approval created: document=%s", document.id)
        await self._notifications.notify_all(
            document.id, f"New document created: {document.name}"
        )
        return approval

    async def _transition(
        self, document_id: str, apply: Callable[[Approval], None]
    ) -> Approval:
        for attempt in range(self._max_attempts):
            approval = await self.get(document_id)
            apply(approval)
            approval.revision += 1
            try:
                await self._approvals.replace_if_unmodified(approval)
            except StaleItemError:
                logger.info(
                    "Approval changed concurrently, retrying: document=%s attempt=%d",
                    document_id,
                    attempt + 1,
                )
                await asyncio.sleep(compute_retry_delay(attempt, self._retry_base))
                continue
            return approval
        msg = f"Approval of document {document_id} kept changing; try again"
        raise VersionConflict(msg)

    async def _mirror_status(self, approval: Approval) -> Document:
        for attempt in range(self._max_attempts):
            document = await self._documents.get_by_id(approval.document_id)
            if document is None:
                raise DocumentNotFound(f"Document not found: {approval.document_id}")
            if document.status_revision >= approval.revision:
                return document
            document.status = approval.status.document_status
            document.status_revision = approval.revision
            try:
                await self._documents.replace_if_unmodified(document)
            except StaleItemError:
                await asyncio.sleep(compute_retry_delay(attempt, self._retry_base))
                continue
            return document
        msg = f"Document {approval.document_id} kept changing; status not updated"
        raise VersionConflict(msg)

    async def _mirror_committed(self, approval: Approval) -> None:
        try:
            await self._mirror_status(approval)
        except (VersionConflict, DocumentNotFound, AzureError):
            logger.warning(
                "Document status not mirrored, reconciled on next load: document=%s revision=%d",
                approval.document_id,
                approval.revision,
                exc_info=True,
            )

    async def reconcile(self, document: Document) -> Document:
        """Return ``document`` with the status of its approval.

        Repairs a status mirror that failed after the approval was committed.
        """
        approval = await self._approvals.get_by_document(document.id)
        if approval is None or document.status_revision >= approval.revision:
            return document
        try:
            return await self._mirror_status(approval)
        except (VersionConflict, AzureError):
            logger.warning(
                "Document status still behind approval: document=%s revision=%d",
                document.id,
                approval.revision,
                exc_info=True,
            )
        return document.model_copy(
            update={
                "status": approval.status.document_status,
                "status_revision": approval.revision,
            }
        )

    async def submit(self, document: Document, actor: Actor) -> Approval:
        """Open a new review round. Allowed from any non-terminal state."""
        authorize(actor, document, Capability.SUBMIT)

        def apply(approval: Approval) -> None:
            if approval.status.is_terminal:
                raise AlreadyFinalized(f"Document {document.id} is already {approval.status}")
            approval.status = ApprovalStatus.PENDING
            approval.approvers = []
            approval.comments = ""
            approval.round += 1

        approval = await self._transition(document.id, apply)
        await self._mirror_committed(approval)
        logger.info(
            "Document submitted: document=%s round=%d actor=%s",
            document.id,
            approval.round,
            actor.id,
        )
        await self._notifications.notify_role(
            Role.REVIEWER,
            document.id,
            f"Document submitted for review: {document.name}",
        )
        return approval

    async def review(
        self,
        document: Document,
        actor: Actor,
        decision: ReviewDecision,
        comments: str = "",
    ) -> Approval:
        """Record one reviewer's decision for the current round.

        A rejection ends the review; approvals from ``quorum`` distinct
        reviewers approve the document.
        """
        authorize(actor, document, Capability.REVIEW)

        def apply(approval: Approval) -> None:
            if approval.status.is_terminal:
                raise AlreadyFinalized(f"Document {document.id} is already {approval.status}")
            if approval.status == ApprovalStatus.DRAFT:
                raise InvalidTransition(f"Document {document.id} has not been submitted")
            if actor.id in approval.approvers:
                raise DuplicateReview(
                    f"{actor.id} already reviewed document {document.id} this round"
                )
            approval.approvers.append(actor.id)
            approval.comments = comments
            approval.reviews.append(
                ReviewEntry(
                    reviewer_id=actor.id,
                    decision=decision,
                    comments=comments,
                    round=approval.round,
                )
            )
            if decision == ReviewDecision.REJECTED:
                approval.status = ApprovalStatus.REJECTED
            elif len(approval.approvers) >= self._quorum:
                approval.status = ApprovalStatus.APPROVED
            else:
                approval.status = ApprovalStatus.IN_PROGRESS

        approval = await self._transition(document.id, apply)
        await self._mirror_committed(approval)
        logger.info(
            "Review recorded: document=%s reviewer=%s decision=%s status=%s",
            document.id,
            actor.id,
            decision,
            approval.status,
        )
        await self._notifications.notify(
            [document.creator_id],
            document.id,
            f"Document {document.name} review status: {approval.status}",
        )
        return approval
