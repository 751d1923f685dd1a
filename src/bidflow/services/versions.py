"""Version chain: allocates version numbers, writes artifacts, then records metadata.

The artifact is always written before the metadata that points at it, so a
version record never references a missing artifact. A crash between the two
leaves an orphan artifact, which a later writer of the same number
overwrites once it is older than ``orphan_after``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from bidflow.database.repositories.base import StaleItemError
from bidflow.errors import (
    AlreadyFinalized,
    ArtifactExists,
    ArtifactNotFound,
    DocumentNotFound,
    SectionNotFound,
    StorageError,
    VersionConflict,
    VersionNotFound,
)
from bidflow.models.base import utcnow
from bidflow.models.document import VersionRecord, version_file_name
from bidflow.services.retry import compute_retry_delay

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from bidflow.database.repositories.documents import DocumentRepository
    from bidflow.generation.adapter import GenerationProvider
    from bidflow.models.document import ContentSnapshot, Document
    from bidflow.storage import ArtifactStore

logger = logging.getLogger(__name__)


class VersionChainManager:
    """Owns the append-only version list of every document."""

    def __init__(
        self,
        documents_repo: DocumentRepository,
        store: ArtifactStore,
        generator: GenerationProvider,
        *,
        max_attempts: int = 3,
        orphan_after: timedelta = timedelta(minutes=5),
        retry_base_seconds: float = 0.05,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._documents = documents_repo
        self._store = store
        self._generator = generator
        self._max_attempts = max(1, max_attempts)
        self._orphan_after = orphan_after
        self._retry_base = retry_base_seconds
        self._clock = clock

    async def _load(self, document_id: str) -> Document:
        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise DocumentNotFound(f"Document not found: {document_id}")
        return document

    async def _write_artifact(self, folder: str, record: VersionRecord) -> None:
        """Write ``record`` without replacing a live artifact of the same name.

        Raises ``VersionConflict`` when a recent artifact already holds the
        number, which means another writer is between its artifact and
        metadata writes.
        """
        payload = record.model_dump_json(indent=2)
        try:
            await self._store.put_file(folder, record.version_id, payload, overwrite=False)
        except ArtifactExists:
            modified = await self._store.last_modified(folder, record.version_id)
            if modified is not None and self._clock() - modified < self._orphan_after:
                msg = f"{folder}/{record.version_id} is being written by another request"
                raise VersionConflict(msg) from None
            logger.warning(
                "Overwriting orphaned artifact: folder=%s file=%s last_modified=%s",
                folder,
                record.version_id,
                modified,
            )
            await self._store.put_file(folder, record.version_id, payload, overwrite=True)

    async def _discard_artifact(self, folder: str, file_name: str) -> None:
        try:
            await self._store.delete_item(f"{folder}/{file_name}")
        except (StorageError, ArtifactNotFound):
            logger.warning(
                "Orphaned artifact left behind: folder=%s file=%s",
                folder,
                file_name,
                exc_info=True,
            )

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(compute_retry_delay(attempt, self._retry_base))

    async def create_initial_version(
        self, document: Document, content: ContentSnapshot
    ) -> VersionRecord:
        """Write version 1 of a new document and append it in memory.

        The caller persists ``document`` afterwards. If the artifact write
        fails the document is left without versions.
        """
        if document.versions:
            raise VersionConflict(f"Document {document.id} already has versions")
        record = VersionRecord(
            version_id=version_file_name(1),
            version_number=1,
            content=content,
            last_modified=self._clock(),
        )
        await self._write_artifact(document.artifact_folder, record)
        document.versions.append(record)
        document.last_modified = record.last_modified
        logger.info("Initial version written: document=%s", document.id)
        return record

    async def _append(
        self,
        document_id: str,
        build: Callable[[ContentSnapshot], ContentSnapshot],
    ) -> VersionRecord:
        for attempt in range(self._max_attempts):
            document = await self._load(document_id)
            latest = document.latest_version
            if latest is None:
                raise VersionNotFound(f"Document {document_id} has no versions")
            if document.status.is_terminal:
                raise AlreadyFinalized(f"Document {document_id} is already {document.status}")

            number = document.next_version_number
            record = VersionRecord(
                version_id=version_file_name(number),
                version_number=number,
                content=build(latest.content),
                last_modified=self._clock(),
            )
            try:
                await self._write_artifact(document.artifact_folder, record)
            except VersionConflict:
                logger.info(
                    "Version number taken, retrying: document=%s version=%d attempt=%d",
                    document_id,
                    record.version_number,
                    attempt + 1,
                )
                await self._backoff(attempt)
                continue

            document.versions.append(record)
            document.last_modified = record.last_modified
            try:
                await self._documents.replace_if_unmodified(document)
            except StaleItemError:
                logger.info(
                    "Document changed during append, retrying: document=%s version=%d attempt=%d",
                    document_id,
                    record.version_number,
                    attempt + 1,
                )
                await self._discard_artifact(document.artifact_folder, record.version_id)
                await self._backoff(attempt)
                continue

            logger.info(
                "Version appended: document=%s version=%d",
                document_id,
                record.version_number,
            )
            return record

        msg = (
            f"Document {document_id} changed concurrently; "
            f"gave up after {self._max_attempts} attempts"
        )
        raise VersionConflict(msg)

    async def append_version(
        self, document_id: str, updated_content: ContentSnapshot
    ) -> VersionRecord:
        """Append ``updated_content`` as the next version of the document."""
        return await self._append(document_id, lambda _latest: updated_content)

    async def get_latest_version(self, document_id: str) -> VersionRecord:
        document = await self._load(document_id)
        latest = document.latest_version
        if latest is None:
            raise VersionNotFound(f"Document {document_id} has no versions")
        return latest

    async def list_versions(self, document_id: str) -> list[VersionRecord]:
        document = await self._load(document_id)
        return sorted(document.versions, key=lambda v: v.version_number)

    async def read_version_artifact(self, document_id: str, version_number: int) -> VersionRecord:
        """Read a version back from the artifact store."""
        document = await self._load(document_id)
        record = document.get_version(version_number)
        if record is None:
            raise VersionNotFound(f"Document {document_id} has no version {version_number}")
        data = await self._store.get_file(document.artifact_folder, record.version_id)
        try:
            return VersionRecord.model_validate_json(data)
        except ValidationError as exc:
            msg = f"Artifact {document.artifact_folder}/{record.version_id} is malformed"
            raise StorageError(msg) from exc

    async def update_section(
        self, document_id: str, section_name: str, instructions: str
    ) -> VersionRecord:
        """Regenerate one section and append a snapshot with only that section replaced.

        The revised text is generated once against the latest content and
        re-applied to whatever is latest on each retry, so concurrent edits to
        other sections survive. A document approved or rejected while the
        revision was being generated raises ``AlreadyFinalized``.
        """
        latest = await self.get_latest_version(document_id)
        current = latest.content.sections.get(section_name)
        if current is None:
            raise SectionNotFound(f"Section {section_name!r} not found in document {document_id}")

        revised = await self._generator.revise_section(section_name, current, instructions)

        def build(content: ContentSnapshot) -> ContentSnapshot:
            if section_name not in content.sections:
                raise SectionNotFound(
                    f"Section {section_name!r} not found in document {document_id}"
                )
            return content.with_section(section_name, revised)

        return await self._append(document_id, build)
