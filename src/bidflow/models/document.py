"""Document model: a bid proposal and its embedded version chain."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from bidflow.models.base import DocumentBase, utcnow


class DocumentStatus(StrEnum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.APPROVED, DocumentStatus.REJECTED)


class ContentSnapshot(BaseModel):
    """Generated proposal content captured by one version."""

    project_name: str
    summary: str = ""
    sections: dict[str, str] = Field(default_factory=dict)

    def with_section(self, name: str, text: str) -> ContentSnapshot:
        """Return a copy with one section replaced, keeping section order."""
        sections = dict(self.sections)
        sections[name] = text
        return self.model_copy(update={"sections": sections})


class VersionRecord(BaseModel):
    """One immutable revision, backed by an artifact named ``version_id``."""

    version_id: str
    version_number: int = Field(ge=1)
    content: ContentSnapshot
    last_modified: datetime = Field(default_factory=utcnow)


def version_file_name(version_number: int) -> str:
    return f"version-{version_number}.json"


class Document(DocumentBase):
    name: str
    creator_id: str
    status: DocumentStatus = DocumentStatus.DRAFT
    model: str = ""
    artifact_folder: str = ""
    last_modified: datetime = Field(default_factory=utcnow)
    status_revision: int = 0
    versions: list[VersionRecord] = Field(default_factory=list)

    @property
    def latest_version(self) -> VersionRecord | None:
        if not self.versions:
            return None
        return max(self.versions, key=lambda v: v.version_number)

    @property
    def next_version_number(self) -> int:
        latest = self.latest_version
        return latest.version_number + 1 if latest else 1

    def get_version(self, version_number: int) -> VersionRecord | None:
        return next((v for v in self.versions if v.version_number == version_number), None)
