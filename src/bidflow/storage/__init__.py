"""Artifact storage: the document store holding version snapshots."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class ItemType(StrEnum):
    FILE = "file"
    FOLDER = "folder"


class FolderHandle(BaseModel):
    """A folder as created by the store (the name may have been changed on conflict)."""

    name: str
    item_id: str | None = None


class ArtifactItem(BaseModel):
    name: str
    type: ItemType
    size: int | None = None
    last_modified: datetime | None = None


@runtime_checkable
class ArtifactStore(Protocol):
    """Protocol for the document store the version chain writes through to."""

    async def create_folder(self, name: str) -> FolderHandle:
        """Create a folder, letting the store rename it if the name is taken."""
        ...

    async def put_file(
        self, folder: str, file_name: str, data: bytes | str, *, overwrite: bool = True
    ) -> None:
        """Write a file; raise ``ArtifactExists`` when ``overwrite`` is False and it exists."""
        ...

    async def get_file(self, folder: str, file_name: str) -> bytes:
        """Read a file; raise ``ArtifactNotFound`` when absent."""
        ...

    async def list_children(self, folder: str = "") -> list[ArtifactItem]:
        """List the direct children of a folder (the store root when empty)."""
        ...

    async def delete_item(self, path: str) -> None:
        """Delete a file or folder by path."""
        ...

    async def update_file(self, path: str, data: bytes | str) -> None:
        """Replace the content of an existing file."""
        ...

    async def last_modified(self, folder: str, file_name: str) -> datetime | None:
        """Return when a file was last written, or None when it does not exist."""
        ...


__all__ = ["ArtifactItem", "ArtifactStore", "FolderHandle", "ItemType"]
