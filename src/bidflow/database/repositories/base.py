"""Generic repository over one Cosmos DB container."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from bidflow.models.base import DocumentBase

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

logger = logging.getLogger(__name__)

_HTTP_PRECONDITION_FAILED = 412

T = TypeVar("T", bound=DocumentBase)


class StaleItemError(Exception):
    """The item changed since it was read (etag mismatch)."""


class BaseRepository(Generic[T]):
    """CRUD helpers shared by every container repository.

    Subclasses set ``container_name`` and ``model_class``. Reads skip
    soft-deleted items; ``replace_if_unmodified`` is the only write that
    checks the etag.
    """

    container_name: ClassVar[str]
    model_class: ClassVar[type[DocumentBase]]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container = database.get_container_client(self.container_name)

    def _to_model(self, data: dict[str, Any]) -> T:
        return cast("T", self.model_class.model_validate(data))

    @staticmethod
    def _to_body(item: DocumentBase) -> dict[str, Any]:
        return item.model_dump(mode="json", exclude_none=True)

    async def create(self, item: T) -> T:
        data = await self._container.create_item(body=self._to_body(item))
        item.etag = data.get("_etag") if isinstance(data, dict) else None
        return item

    async def get(self, item_id: str, partition_key: str) -> T | None:
        try:
            data = await self._container.read_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return None
        if data.get("deleted_at") is not None:
            return None
        return self._to_model(data)

    async def update(self, item: T, partition_key: str) -> T:  # noqa: ARG002
        """Replace the stored item unconditionally."""
        item.updated_at = datetime.now(UTC)
        data = await self._container.replace_item(item=item.id, body=self._to_body(item))
        item.etag = data.get("_etag") if isinstance(data, dict) else None
        return item

    async def replace_if_unmodified(self, item: T) -> T:
        """Replace the stored item only if its etag still matches.

        Raises ``StaleItemError`` when another writer got there first.
        """
        if item.etag is None:
            raise StaleItemError(f"{self.container_name}/{item.id} has no etag")
        item.updated_at = datetime.now(UTC)
        try:
            data = await self._container.replace_item(
                item=item.id,
                body=self._to_body(item),
                etag=item.etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == _HTTP_PRECONDITION_FAILED:
                raise StaleItemError(f"{self.container_name}/{item.id} was modified") from exc
            raise
        item.etag = data.get("_etag") if isinstance(data, dict) else None
        return item

    async def soft_delete(self, item: T, partition_key: str) -> T:
        item.deleted_at = datetime.now(UTC)
        return await self.update(item, partition_key)

    async def delete(self, item_id: str, partition_key: str) -> None:
        """Remove the item physically. Missing items are ignored."""
        try:
            await self._container.delete_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            logger.debug("Delete skipped, item missing: %s/%s", self.container_name, item_id)

    async def query(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
    ) -> list[T]:
        items = self._container.query_items(query=query, parameters=parameters or [])
        return [self._to_model(item) async for item in items]
