"""Entra ID credential provider with cached, pre-emptively refreshed tokens."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import timedelta
from typing import TYPE_CHECKING

from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential

if TYPE_CHECKING:
    from collections.abc import Callable

    from azure.core.credentials import AccessToken
    from azure.core.credentials_async import AsyncTokenCredential

    from bidflow.config import EntraConfig

logger = logging.getLogger(__name__)


class CredentialProvider:
    """Owns one async Azure credential for the lifetime of the process.

    Uses the app registration's client secret when it is configured and
    ``DefaultAzureCredential`` (Azure CLI locally, managed identity when
    deployed) otherwise. Tokens are cached per scope and refreshed
    ``refresh_margin`` before they expire.
    """

    def __init__(
        self,
        config: EntraConfig,
        *,
        refresh_margin: timedelta = timedelta(minutes=5),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._refresh_margin = refresh_margin.total_seconds()
        self._clock = clock
        self._credential: AsyncTokenCredential | None = None
        self._tokens: dict[str, AccessToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def initialize(self) -> None:
        if self._config.has_client_secret:
            self._credential = ClientSecretCredential(
                self._config.tenant_id,
                self._config.client_id,
                self._config.client_secret,
            )
            logger.info("Credential provider initialized: client_id=%s", self._config.client_id)
        else:
            self._credential = DefaultAzureCredential()
            logger.info("Credential provider initialized with DefaultAzureCredential")

    async def close(self) -> None:
        if self._credential is not None:
            await self._credential.close()
            self._credential = None
        self._tokens.clear()

    @property
    def credential(self) -> AsyncTokenCredential:
        if self._credential is None:
            raise RuntimeError("CredentialProvider not initialized, call initialize() first")
        return self._credential

    def _is_fresh(self, token: AccessToken) -> bool:
        return token.expires_on - self._clock() > self._refresh_margin

    async def get_token(self, scope: str) -> str:
        """Return a bearer token for ``scope``, refreshing it when close to expiry."""
        token = self._tokens.get(scope)
        if token is not None and self._is_fresh(token):
            return token.token

        lock = self._locks.setdefault(scope, asyncio.Lock())
        async with lock:
            token = self._tokens.get(scope)
            if token is None or not self._is_fresh(token):
                token = await self.credential.get_token(scope)
                self._tokens[scope] = token
                logger.info(
                    "Token refreshed: scope=%s expires_in=%ds",
                    scope,
                    int(token.expires_on - self._clock()),
                )
        return token.token
