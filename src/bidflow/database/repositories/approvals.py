"""Repository for the approvals container (partitioned by /document_id)."""

from __future__ import annotations

from bidflow.database.repositories.base import BaseRepository
from bidflow.models.approval import Approval


class ApprovalRepository(BaseRepository[Approval]):
    container_name = "approvals"
    model_class = Approval

    async def get_by_document(self, document_id: str) -> Approval | None:
        """Fetch the approval record of a document, if any."""
        results = await self.query(
            "SELECT * FROM c WHERE c.document_id = @document_id AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@document_id", "value": document_id}],
        )
        return results[0] if results else None
