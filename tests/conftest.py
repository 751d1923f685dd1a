"""Shared fixtures: in-memory Cosmos containers, artifact store and generator."""

from __future__ import annotations

import asyncio
import copy
import re
import uuid
from datetime import UTC, datetime
from typing import Any

import pytest
from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from bidflow.database.repositories import (
    ApprovalRepository,
    DocumentRepository,
    NotificationRepository,
    UserRepository,
)
from bidflow.errors import ArtifactExists, ArtifactNotFound, GenerationError
from bidflow.generation.schemas import ProposalPlan
from bidflow.models.user import Actor, Role, User
from bidflow.services.approvals import ReviewWorkflow
from bidflow.services.documents import DocumentService
from bidflow.services.notifications import NotificationService
from bidflow.services.versions import VersionChainManager
from bidflow.storage import ArtifactItem, FolderHandle, ItemType
from bidflow.storage.renderer import DocumentRenderer

_ORDER_BY = re.compile(r"ORDER BY c\.(\w+) (ASC|DESC)")


class FakeContainer:
    """Just enough of ``azure.cosmos.aio.ContainerProxy`` for the repositories.

    ``replace_item`` yields to the event loop once, so concurrent writers
    interleave between their read and their compare-and-swap.

    ``errors`` maps a method name to an exception raised on its next call.
    ``before_replace`` runs inside ``replace_item`` before the etag check,
    which lets a test slip in a concurrent write.
    """

    def __init__(self, partition_field: str = "id") -> None:
        self.partition_field = partition_field
        self.items: dict[str, dict[str, Any]] = {}
        self.errors: dict[str, Exception] = {}
        self.before_replace: Any = None
        self.replace_calls = 0

    def _raise_injected(self, method: str) -> None:
        error = self.errors.pop(method, None)
        if error is not None:
            raise error

    def touch(self, item_id: str) -> None:
        """Simulate another writer by changing the stored etag."""
        self.items[item_id]["_etag"] = uuid.uuid4().hex

    async def create_item(self, body: dict[str, Any]) -> dict[str, Any]:
        self._raise_injected("create_item")
        if body["id"] in self.items:
            raise CosmosResourceExistsError(status_code=409, message="Conflict")
        stored = {**copy.deepcopy(body), "_etag": uuid.uuid4().hex}
        self.items[body["id"]] = stored
        return copy.deepcopy(stored)

    def _in_partition(self, item: str, partition_key: str) -> bool:
        stored = self.items.get(item)
        return stored is not None and stored.get(self.partition_field) == partition_key

    async def read_item(self, item: str, partition_key: str) -> dict[str, Any]:
        self._raise_injected("read_item")
        if not self._in_partition(item, partition_key):
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        return copy.deepcopy(self.items[item])

    async def replace_item(
        self,
        item: str,
        body: dict[str, Any],
        etag: str | None = None,
        match_condition: MatchConditions | None = None,
    ) -> dict[str, Any]:
        await asyncio.sleep(0)
        self.replace_calls += 1
        self._raise_injected("replace_item")
        if self.before_replace is not None:
            self.before_replace(item)
        current = self.items.get(item)
        if current is None:
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        if match_condition == MatchConditions.IfNotModified and etag != current["_etag"]:
            raise CosmosHttpResponseError(status_code=412, message="Precondition failed")
        stored = {**copy.deepcopy(body), "_etag": uuid.uuid4().hex}
        self.items[item] = stored
        return copy.deepcopy(stored)

    async def delete_item(self, item: str, partition_key: str) -> None:
        self._raise_injected("delete_item")
        if not self._in_partition(item, partition_key):
            raise CosmosResourceNotFoundError(status_code=404, message="Not found")
        del self.items[item]

    def query_items(self, query: str, parameters: list[dict[str, Any]]) -> Any:
        self._raise_injected("query_items")
        return self._query(query, parameters)

    async def _query(self, query: str, parameters: list[dict[str, Any]]) -> Any:
        results = [
            item
            for item in self.items.values()
            if item.get("deleted_at") is None
            and all(item.get(p["name"].lstrip("@")) == p["value"] for p in parameters)
        ]
        order = _ORDER_BY.search(query)
        if order:
            field, direction = order.groups()
            results.sort(key=lambda item: item.get(field) or "", reverse=direction == "DESC")
        for item in results:
            yield copy.deepcopy(item)


_PARTITION_FIELDS = {"approvals": "document_id", "notifications": "user_id"}


class FakeDatabase:
    def __init__(self) -> None:
        self.containers: dict[str, FakeContainer] = {}

    def get_container_client(self, name: str) -> FakeContainer:
        if name not in self.containers:
            self.containers[name] = FakeContainer(_PARTITION_FIELDS.get(name, "id"))
        return self.containers[name]


class InMemoryArtifactStore:
    """Artifact store double with the same conflict semantics as the Graph store."""

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, datetime]] = {}
        self.folders: set[str] = set()
        self.write_error: Exception | None = None

    async def create_folder(self, name: str) -> FolderHandle:
        if self.write_error is not None:
            raise self.write_error
        created, suffix = name, 1
        while created in self.folders:
            created = f"{name} {suffix}"
            suffix += 1
        self.folders.add(created)
        return FolderHandle(name=created, item_id=uuid.uuid4().hex)

    async def put_file(
        self, folder: str, file_name: str, data: bytes | str, *, overwrite: bool = True
    ) -> None:
        await asyncio.sleep(0)
        if self.write_error is not None:
            raise self.write_error
        path = f"{folder}/{file_name}"
        if not overwrite and path in self.files:
            raise ArtifactExists(path)
        payload = data.encode("utf-8") if isinstance(data, str) else data
        self.files[path] = (payload, datetime.now(UTC))

    async def get_file(self, folder: str, file_name: str) -> bytes:
        path = f"{folder}/{file_name}"
        if path not in self.files:
            raise ArtifactNotFound(path)
        return self.files[path][0]

    async def list_children(self, folder: str = "") -> list[ArtifactItem]:
        if not folder:
            return [ArtifactItem(name=name, type=ItemType.FOLDER) for name in sorted(self.folders)]
        prefix = f"{folder}/"
        return [
            ArtifactItem(
                name=path.removeprefix(prefix),
                type=ItemType.FILE,
                size=len(data),
                last_modified=modified,
            )
            for path, (data, modified) in sorted(self.files.items())
            if path.startswith(prefix)
        ]

    async def delete_item(self, path: str) -> None:
        if path in self.files:
            del self.files[path]
            return
        if path in self.folders:
            self.folders.discard(path)
            for file_path in [p for p in self.files if p.startswith(f"{path}/")]:
                del self.files[file_path]
            return
        raise ArtifactNotFound(path)

    async def update_file(self, path: str, data: bytes | str) -> None:
        if path not in self.files:
            raise ArtifactNotFound(path)
        folder, _, file_name = path.rpartition("/")
        await self.put_file(folder, file_name, data)

    async def last_modified(self, folder: str, file_name: str) -> datetime | None:
        entry = self.files.get(f"{folder}/{file_name}")
        return entry[1] if entry else None


class FakeGenerator:
    """Deterministic stand-in for the generation adapter.

    ``errors`` maps an operation name to an exception raised when it is called.
    """

    def __init__(self, sections: tuple[str, ...] = ("Scope of Work", "Methodology")) -> None:
        self.plan = ProposalPlan(summary="Seismic retrofit of a river bridge.", sections=list(sections))
        self.errors: dict[str, GenerationError] = {}
        self.calls: list[str] = []
        self.section_details: list[str] = []

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.errors:
            raise self.errors[operation]

    async def summarize_and_plan(self, project_name: str, project_details: str) -> ProposalPlan:  # noqa: ARG002
        self._call("summarize_and_plan")
        return self.plan

    async def generate_section(
        self, project_name: str, summary: str, project_details: str, section_name: str  # noqa: ARG002
    ) -> str:
        self._call("generate_section")
        self.section_details.append(project_details)
        return f"{section_name} for {project_name}."

    async def revise_section(self, section_name: str, current_text: str, instructions: str) -> str:  # noqa: ARG002
        self._call("revise_section")
        return f"{current_text} Revised: {instructions}"

    async def generate_from_document(self, source_text: str) -> str:
        self._call("generate_from_document")
        return f"Technical proposal answering: {source_text}"

    async def critique(self, proposal_text: str) -> str:  # noqa: ARG002
        self._call("critique")
        return "<h2>Gaps</h2><ul><li>No schedule</li></ul>"


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def documents_repo(database: FakeDatabase) -> DocumentRepository:
    return DocumentRepository(database)


@pytest.fixture
def approvals_repo(database: FakeDatabase) -> ApprovalRepository:
    return ApprovalRepository(database)


@pytest.fixture
def notifications_repo(database: FakeDatabase) -> NotificationRepository:
    return NotificationRepository(database)


@pytest.fixture
def users_repo(database: FakeDatabase) -> UserRepository:
    return UserRepository(database)


@pytest.fixture
def store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def admin() -> Actor:
    return Actor(id="user-admin", name="Ada Admin", role=Role.ADMIN)


@pytest.fixture
def creator() -> Actor:
    return Actor(id="user-creator", name="Carla Creator", role=Role.CREATOR)


@pytest.fixture
def other_creator() -> Actor:
    return Actor(id="user-creator-2", name="Colm Creator", role=Role.CREATOR)


@pytest.fixture
def reviewer_a() -> Actor:
    return Actor(id="user-reviewer-a", name="Rita Reviewer", role=Role.REVIEWER)


@pytest.fixture
def reviewer_b() -> Actor:
    return Actor(id="user-reviewer-b", name="Raj Reviewer", role=Role.REVIEWER)


@pytest.fixture
def viewer() -> Actor:
    return Actor(id="user-viewer", name="Vic Viewer", role=Role.VIEWER)


@pytest.fixture
def client_actor() -> Actor:
    return Actor(id="user-client", name="Cleo Client", role=Role.CLIENT)


@pytest.fixture
async def directory(
    users_repo: UserRepository,
    admin: Actor,
    creator: Actor,
    reviewer_a: Actor,
    reviewer_b: Actor,
    viewer: Actor,
) -> list[User]:
    """Seed the user directory with one user per actor fixture."""
    users = [
        User(id=actor.id, name=actor.name, email=f"{actor.id}@example.com", role=actor.role)
        for actor in (admin, creator, reviewer_a, reviewer_b, viewer)
    ]
    for user in users:
        await users_repo.create(user)
    return users


@pytest.fixture
def notifications(
    notifications_repo: NotificationRepository, users_repo: UserRepository
) -> NotificationService:
    return NotificationService(notifications_repo, users_repo)


@pytest.fixture
def workflow(
    approvals_repo: ApprovalRepository,
    documents_repo: DocumentRepository,
    notifications: NotificationService,
) -> ReviewWorkflow:
    return ReviewWorkflow(
        approvals_repo,
        documents_repo,
        notifications,
        quorum=2,
        retry_base_seconds=0,
    )


@pytest.fixture
def versions(
    documents_repo: DocumentRepository,
    store: InMemoryArtifactStore,
    generator: FakeGenerator,
) -> VersionChainManager:
    return VersionChainManager(documents_repo, store, generator, retry_base_seconds=0)


@pytest.fixture
def service(
    documents_repo: DocumentRepository,
    generator: FakeGenerator,
    store: InMemoryArtifactStore,
    versions: VersionChainManager,
    workflow: ReviewWorkflow,
    notifications: NotificationService,
) -> DocumentService:
    return DocumentService(
        documents_repo,
        generator,
        store,
        versions,
        workflow,
        notifications,
        DocumentRenderer(),
        model="gpt-4o",
    )
