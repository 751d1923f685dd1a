"""Repository for the documents container (partitioned by /id)."""

from __future__ import annotations

from bidflow.database.repositories.base import BaseRepository
from bidflow.models.document import Document


class DocumentRepository(BaseRepository[Document]):
    container_name = "documents"
    model_class = Document

    async def get_by_id(self, document_id: str) -> Document | None:
        return await self.get(document_id, document_id)

    async def list_all(self) -> list[Document]:
        """Fetch all documents, most recently modified first."""
        return await self.query(
            "SELECT * FROM c WHERE NOT IS_DEFINED(c.deleted_at) ORDER BY c.last_modified DESC",
        )

    async def get_by_artifact_folder(self, folder: str) -> Document | None:
        results = await self.query(
            "SELECT * FROM c WHERE c.artifact_folder = @artifact_folder"
            " AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@artifact_folder", "value": folder}],
        )
        return results[0] if results else None
