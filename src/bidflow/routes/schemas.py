"""Request and response bodies. JSON field names are camelCase."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bidflow.models.approval import ApprovalStatus, ReviewDecision
from bidflow.models.document import DocumentStatus
from bidflow.storage import ItemType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CreateDocumentRequest(CamelModel):
    project_name: str = Field(min_length=1)
    project_details: str = Field(min_length=1)


class CreateFromSourceRequest(CamelModel):
    name: str = Field(min_length=1)
    source_text: str = Field(min_length=1)


class UpdateSectionRequest(CamelModel):
    document_id: str = Field(min_length=1)
    section_name: str = Field(min_length=1)
    instructions: str = Field(min_length=1)


class ReviewRequest(CamelModel):
    decision: ReviewDecision
    comments: str = ""


class ContentOut(CamelModel):
    project_name: str
    summary: str
    sections: dict[str, str]


class VersionOut(CamelModel):
    version_id: str
    version_number: int
    content: ContentOut
    last_modified: datetime


class DocumentOut(CamelModel):
    id: str
    name: str
    creator_id: str
    status: DocumentStatus
    model: str
    created_at: datetime
    last_modified: datetime
    latest_version: VersionOut | None = None
    version_count: int = 0


class VersionSummaryOut(CamelModel):
    version_id: str
    version_number: int
    last_modified: datetime


class ApprovalOut(CamelModel):
    document_id: str
    status: ApprovalStatus
    approvers: list[str]
    comments: str
    round: int


class NotificationOut(CamelModel):
    id: str
    document_id: str
    text: str
    read: bool
    created_at: datetime


class ArtifactOut(CamelModel):
    name: str
    type: ItemType
    size: int | None = None
    last_modified: datetime | None = None
