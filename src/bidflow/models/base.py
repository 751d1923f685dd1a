"""Base model shared by every Cosmos DB document type."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentBase(BaseModel):
    """Common fields for persisted records.

    ``etag`` is read from the Cosmos ``_etag`` system property and never
    written back; repositories use it for optimistic concurrency.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None
    etag: str | None = Field(default=None, validation_alias="_etag", exclude=True)
