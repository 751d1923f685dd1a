"""Artifact store backed by a SharePoint document library via Microsoft Graph."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from azure.core.exceptions import AzureError

from bidflow.errors import (
    ArtifactExists,
    ArtifactNotFound,
    StorageError,
    StorageTimeout,
    StorageWriteError,
)
from bidflow.storage import ArtifactItem, FolderHandle, ItemType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from bidflow.config import StorageConfig

logger = logging.getLogger(__name__)

_CONFLICT_BEHAVIOR = "@microsoft.graph.conflictBehavior"
_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409
_HTTP_ERROR = 400


def _join(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def _encode(path: str) -> str:
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


def _as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


class GraphArtifactStore:
    """Stores artifacts as drive items under ``root_folder`` of a SharePoint site.

    Every call is bounded by ``timeout_seconds``; timeouts raise
    ``StorageTimeout`` and transport or HTTP failures raise ``StorageError``
    (``StorageWriteError`` for writes).
    """

    def __init__(
        self,
        config: StorageConfig,
        token_provider: Callable[[], Awaitable[str]],
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._token_provider = token_provider
        self._timeout = config.timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=f"{config.base_url.rstrip('/')}/sites/{config.site_id}/drive",
            timeout=config.timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _item_url(self, path: str) -> str:
        full = _join(self._config.root_folder, path)
        return f"/root:/{_encode(full)}:" if full else "/root"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        write: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        error_cls = StorageWriteError if write else StorageError
        try:
            async with asyncio.timeout(self._timeout):
                token = await self._token_provider()
                response = await self._client.request(
                    method,
                    url,
                    headers={"Authorization": f"Bearer {token}"},
                    **kwargs,
                )
        except (TimeoutError, httpx.TimeoutException) as exc:
            msg = f"{method} {url} timed out after {self._timeout:.0f}s"
            raise StorageTimeout(msg) from exc
        except (httpx.HTTPError, AzureError) as exc:
            raise error_cls(f"{method} {url} failed: {exc}") from exc
        return response

    @staticmethod
    def _check(response: httpx.Response, path: str, *, write: bool = False) -> None:
        if response.status_code == _HTTP_NOT_FOUND:
            raise ArtifactNotFound(f"Artifact not found: {path}")
        if response.status_code == _HTTP_CONFLICT:
            raise ArtifactExists(f"Artifact already exists: {path}")
        if response.status_code >= _HTTP_ERROR:
            error_cls = StorageWriteError if write else StorageError
            detail = response.text[:200]
            raise error_cls(f"Graph returned {response.status_code} for {path}: {detail}")

    async def create_folder(self, name: str) -> FolderHandle:
        response = await self._request(
            "POST",
            f"{self._item_url('')}/children",
            write=True,
            json={"name": name, "folder": {}, _CONFLICT_BEHAVIOR: "rename"},
        )
        self._check(response, name, write=True)
        data = response.json()
        folder = FolderHandle(name=data.get("name", name), item_id=data.get("id"))
        if folder.name != name:
            logger.info("Folder renamed on conflict: requested=%s created=%s", name, folder.name)
        logger.info("Folder created: name=%s", folder.name)
        return folder

    async def put_file(
        self, folder: str, file_name: str, data: bytes | str, *, overwrite: bool = True
    ) -> None:
        path = _join(folder, file_name)
        payload = _as_bytes(data)
        response = await self._request(
            "PUT",
            f"{self._item_url(path)}/content",
            write=True,
            params={_CONFLICT_BEHAVIOR: "replace" if overwrite else "fail"},
            content=payload,
        )
        self._check(response, path, write=True)
        logger.info("File uploaded: path=%s bytes=%d", path, len(payload))

    async def get_file(self, folder: str, file_name: str) -> bytes:
        path = _join(folder, file_name)
        response = await self._request("GET", f"{self._item_url(path)}/content")
        self._check(response, path)
        return response.content

    async def list_children(self, folder: str = "") -> list[ArtifactItem]:
        items: list[ArtifactItem] = []
        url: str | None = f"{self._item_url(folder)}/children"
        while url:
            response = await self._request("GET", url)
            self._check(response, folder or "/")
            data = response.json()
            items.extend(
                ArtifactItem(
                    name=entry["name"],
                    type=ItemType.FOLDER if "folder" in entry else ItemType.FILE,
                    size=entry.get("size"),
                    last_modified=entry.get("lastModifiedDateTime"),
                )
                for entry in data.get("value", [])
            )
            url = data.get("@odata.nextLink")
        return items

    async def delete_item(self, path: str) -> None:
        response = await self._request("DELETE", self._item_url(path), write=True)
        self._check(response, path, write=True)
        logger.info("Item deleted: path=%s", path)

    async def update_file(self, path: str, data: bytes | str) -> None:
        response = await self._request("GET", self._item_url(path))
        self._check(response, path)
        folder, _, file_name = path.rpartition("/")
        await self.put_file(folder, file_name, data, overwrite=True)

    async def last_modified(self, folder: str, file_name: str) -> datetime | None:
        path = _join(folder, file_name)
        response = await self._request("GET", self._item_url(path))
        if response.status_code == _HTTP_NOT_FOUND:
            return None
        self._check(response, path)
        raw = response.json().get("lastModifiedDateTime")
        return datetime.fromisoformat(raw) if raw else None
