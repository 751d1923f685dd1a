"""Async Cosmos DB client initialization."""

from __future__ import annotations

import logging

from azure.cosmos.aio import CosmosClient as AzureCosmosClient
from azure.cosmos.aio import DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError

from bidflow.config import CosmosConfig

logger = logging.getLogger(__name__)


class CosmosClient:
    """Manages the async Cosmos DB client and database reference."""

    def __init__(self, config: CosmosConfig) -> None:
        self._config = config
        self._client: AzureCosmosClient | None = None
        self._database: DatabaseProxy | None = None

    async def initialize(self) -> None:
        """Create the client and verify the database is reachable."""
        self._client = AzureCosmosClient(self._config.endpoint, credential=self._config.key)
        self._database = self._client.get_database_client(self._config.database)
        try:
            await self._database.read()
        except CosmosHttpResponseError as exc:
            await self.close()
            msg = f"Cannot reach Cosmos DB database {self._config.database!r}: {exc.message}"
            raise ConnectionError(msg) from exc
        logger.info(
            "Cosmos DB connected: endpoint=%s database=%s",
            self._config.endpoint,
            self._config.database,
        )

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None

    @property
    def database(self) -> DatabaseProxy:
        if self._database is None:
            raise RuntimeError("CosmosClient not initialized, call initialize() first")
        return self._database
