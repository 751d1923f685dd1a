"""Approval model: review state for one document."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from bidflow.models.base import DocumentBase, utcnow
from bidflow.models.document import DocumentStatus


class ApprovalStatus(StrEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)

    @property
    def document_status(self) -> DocumentStatus:
        """The document status mirrored for this approval status."""
        return _DOCUMENT_STATUS[self]


_DOCUMENT_STATUS = {
    ApprovalStatus.DRAFT: DocumentStatus.DRAFT,
    ApprovalStatus.SUBMITTED: DocumentStatus.SUBMITTED,
    ApprovalStatus.PENDING: DocumentStatus.SUBMITTED,
    ApprovalStatus.IN_PROGRESS: DocumentStatus.IN_PROGRESS,
    ApprovalStatus.APPROVED: DocumentStatus.APPROVED,
    ApprovalStatus.REJECTED: DocumentStatus.REJECTED,
}


class ReviewDecision(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewEntry(BaseModel):
    reviewer_id: str
    decision: ReviewDecision
    comments: str = ""
    round: int
    reviewed_at: datetime = Field(default_factory=utcnow)


class Approval(DocumentBase):
    document_id: str
    status: ApprovalStatus = ApprovalStatus.DRAFT
    approvers: list[str] = Field(default_factory=list)
    comments: str = ""
    round: int = 0
    revision: int = 0
    reviews: list[ReviewEntry] = Field(default_factory=list)
