"""Tests for the Microsoft Graph artifact store."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import pytest

from bidflow.config import StorageConfig
from bidflow.errors import (
    ArtifactExists,
    ArtifactNotFound,
    StorageError,
    StorageTimeout,
    StorageWriteError,
)
from bidflow.storage import ArtifactStore, ItemType
from bidflow.storage.graph import GraphArtifactStore

_BASE = "https://graph.test/v1.0/sites/site-1/drive"


class FakeDrive:
    """In-memory drive answering the Graph item-path endpoints."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.folders: set[str] = set()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1.0/sites/site-1/drive")
        if request.method == "POST" and path.endswith("/children"):
            body = httpx.Response(200, content=request.content).json()
            name = body["name"]
            while name in self.folders:
                name = f"{name} 1"
            self.folders.add(name)
            return httpx.Response(201, json={"id": f"id-{name}", "name": name, "folder": {}})
        item = path.removeprefix("/root:/").removesuffix("/content").removesuffix(":")
        if request.method == "PUT":
            if item in self.files and request.url.params.get(
                "@microsoft.graph.conflictBehavior"
            ) == "fail":
                return httpx.Response(409, json={"error": {"code": "nameAlreadyExists"}})
            self.files[item] = request.content
            return httpx.Response(201, json={"name": item.rsplit("/", 1)[-1]})
        if request.method == "GET" and path.endswith("/content"):
            if item not in self.files:
                return httpx.Response(404, json={"error": {"code": "itemNotFound"}})
            return httpx.Response(200, content=self.files[item])
        if request.method == "GET" and path.endswith(":/children"):
            folder = path.removeprefix("/root:/").removesuffix(":/children")
            entries = [
                {"name": p.rsplit("/", 1)[-1], "size": len(data), "file": {}}
                for p, data in self.files.items()
                if p.startswith(f"{folder}/")
            ]
            return httpx.Response(200, json={"value": entries})
        if request.method == "GET":
            if item not in self.files:
                return httpx.Response(404, json={"error": {"code": "itemNotFound"}})
            return httpx.Response(
                200,
                json={"name": item, "lastModifiedDateTime": "2025-03-01T10:00:00Z"},
            )
        if request.method == "DELETE":
            if self.files.pop(item, None) is None:
                return httpx.Response(404, json={"error": {"code": "itemNotFound"}})
            return httpx.Response(204)
        return httpx.Response(405)


def _config(root_folder: str = "") -> StorageConfig:
    return StorageConfig(
        base_url="https://graph.test/v1.0",
        site_id="site-1",
        root_folder=root_folder,
        timeout_seconds=1.0,
    )


async def _token() -> str:
    return "token-123"


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
async def store(drive: FakeDrive):
    graph = GraphArtifactStore(_config(), _token, transport=httpx.MockTransport(drive.handler))
    yield graph
    await graph.close()


def test_store_satisfies_protocol(store) -> None:
    """Verify the Graph store is an ArtifactStore."""
    assert isinstance(store, ArtifactStore)


class TestFiles:
    """Verify file operations against the drive."""

    async def test_put_then_get_round_trip(self, store, drive) -> None:
        """Verify bytes read back equal the bytes written."""
        payload = '{"sections": {"Scope": "Piers, phase 1 (Zürich)"}}'

        await store.put_file("doc-1", "version-1.json", payload)

        assert await store.get_file("doc-1", "version-1.json") == payload.encode("utf-8")
        assert drive.requests[0].headers["Authorization"] == "Bearer token-123"

    async def test_no_overwrite_raises_artifact_exists(self, store) -> None:
        """Verify overwrite=False maps Graph 409 to ArtifactExists."""
        await store.put_file("doc-1", "version-2.json", b"first")

        with pytest.raises(ArtifactExists):
            await store.put_file("doc-1", "version-2.json", b"second", overwrite=False)

        assert await store.get_file("doc-1", "version-2.json") == b"first"

    async def test_overwrite_replaces(self, store) -> None:
        """Verify the default write replaces existing content."""
        await store.put_file("doc-1", "notes.txt", b"first")
        await store.put_file("doc-1", "notes.txt", b"second")

        assert await store.get_file("doc-1", "notes.txt") == b"second"

    async def test_missing_file(self, store) -> None:
        """Verify a 404 raises ArtifactNotFound."""
        with pytest.raises(ArtifactNotFound):
            await store.get_file("doc-1", "version-9.json")

    async def test_update_file_requires_existing(self, store) -> None:
        """Verify update_file refuses to create new files."""
        with pytest.raises(ArtifactNotFound):
            await store.update_file("doc-1/notes.txt", b"text")

        await store.put_file("doc-1", "notes.txt", b"v1")
        await store.update_file("doc-1/notes.txt", b"v2")

        assert await store.get_file("doc-1", "notes.txt") == b"v2"

    async def test_delete_item(self, store) -> None:
        """Verify deleted files are gone."""
        await store.put_file("doc-1", "notes.txt", b"text")

        await store.delete_item("doc-1/notes.txt")

        with pytest.raises(ArtifactNotFound):
            await store.get_file("doc-1", "notes.txt")

    async def test_last_modified(self, store) -> None:
        """Verify last_modified parses the timestamp and is None when missing."""
        await store.put_file("doc-1", "version-1.json", b"{}")

        assert await store.last_modified("doc-1", "version-1.json") == datetime(
            2025, 3, 1, 10, tzinfo=UTC
        )
        assert await store.last_modified("doc-1", "version-2.json") is None

    async def test_list_children(self, store) -> None:
        """Verify children are listed with their type and size."""
        await store.put_file("doc-1", "version-1.json", b"{}")

        items = await store.list_children("doc-1")

        assert [(i.name, i.type, i.size) for i in items] == [
            ("version-1.json", ItemType.FILE, 2)
        ]


class TestFolders:
    """Verify folder creation semantics."""

    async def test_create_folder(self, store) -> None:
        """Verify the created folder handle carries the drive item id."""
        folder = await store.create_folder("doc-1")

        assert folder.name == "doc-1"
        assert folder.item_id == "id-doc-1"

    async def test_create_folder_renames_on_conflict(self, store) -> None:
        """Verify the store reports the name Graph actually used."""
        await store.create_folder("doc-1")

        folder = await store.create_folder("doc-1")

        assert folder.name == "doc-1 1"

    async def test_root_folder_prefixes_paths(self, drive) -> None:
        """Verify the configured root folder is part of every item path."""
        graph = GraphArtifactStore(
            _config("Bids"), _token, transport=httpx.MockTransport(drive.handler)
        )
        await graph.put_file("doc-1", "version-1.json", b"{}")
        await graph.close()

        assert "Bids/doc-1/version-1.json" in drive.files


class TestFailures:
    """Verify transport failures map to storage errors."""

    async def test_timeout(self) -> None:
        """Verify a slow drive raises StorageTimeout."""

        async def slow(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            await asyncio.sleep(5)
            return httpx.Response(200)

        graph = GraphArtifactStore(_config(), _token, transport=httpx.MockTransport(slow))
        with pytest.raises(StorageTimeout):
            await graph.get_file("doc-1", "version-1.json")
        await graph.close()

    async def test_connection_error_on_write(self) -> None:
        """Verify transport errors on writes raise StorageWriteError."""

        def broken(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        graph = GraphArtifactStore(_config(), _token, transport=httpx.MockTransport(broken))
        with pytest.raises(StorageWriteError):
            await graph.put_file("doc-1", "version-1.json", b"{}")
        await graph.close()

    async def test_server_error_on_read(self) -> None:
        """Verify 5xx answers raise StorageError."""
        graph = GraphArtifactStore(
            _config(),
            _token,
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy")),
        )
        with pytest.raises(StorageError, match="503"):
            await graph.list_children("doc-1")
        await graph.close()
