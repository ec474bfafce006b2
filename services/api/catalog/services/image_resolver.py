"""Turn an image reference (local path or http(s) URL) into a public URL.

Local paths are read relative to the import images root. Remote URLs are
downloaded with httpx. Either way the bytes are uploaded to object storage at
product/{public_id}/{filename}, overwriting what is there, so re-running the
import with unchanged files is a no-op.

Errors:
- LocalImageNotFound: the caller skips that image and carries on
- RemoteFetchError: fatal, stops the run
"""

from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("uvicorn.error")

_REMOTE_RE = re.compile(r"^https?://", re.IGNORECASE)

_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


class LocalImageNotFound(FileNotFoundError):
    """A local image referenced by the import does not exist on disk."""


class RemoteFetchError(RuntimeError):
    """Downloading a remote image failed."""


class ObjectStorage(Protocol):
    """Upload-and-get-public-URL object storage."""

    async def upload(self, storage_path: str, data: bytes, content_type: str) -> None: ...

    def public_url(self, storage_path: str) -> str: ...


def is_remote(file_or_url: str) -> bool:
    return bool(_REMOTE_RE.match(file_or_url))


def guess_content_type(filename: str) -> str:
    """Content type from the file extension (octet-stream when unknown)."""
    ext = PurePosixPath(filename).suffix.lower()
    if ext in _CONTENT_TYPES:
        return _CONTENT_TYPES[ext]
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


def storage_path_for(public_id: str, file_or_url: str) -> str:
    """Deterministic object key: product/{public_id}/{basename}."""
    if is_remote(file_or_url):
        name = PurePosixPath(urlparse(file_or_url).path).name
    else:
        name = PurePosixPath(file_or_url.replace("\\", "/")).name
    return f"product/{public_id}/{name}"


class ImageResolver:
    """Uploads images for one import run."""

    def __init__(
        self,
        storage: ObjectStorage,
        images_root: str | Path,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.storage = storage
        self.images_root = Path(images_root)
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client if we created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def read_bytes(self, file_or_url: str) -> bytes:
        """Load image bytes from disk or the network."""
        if is_remote(file_or_url):
            client = await self._get_client()
            try:
                resp = await client.get(file_or_url)
            except httpx.HTTPError as e:
                raise RemoteFetchError(f"Failed to download {file_or_url}: {e}") from e
            if not resp.is_success:
                raise RemoteFetchError(f"Failed to download {file_or_url}: {resp.status_code}")
            return resp.content

        local_path = Path(file_or_url)
        if not local_path.is_absolute():
            local_path = self.images_root / file_or_url
        if not local_path.is_file():
            raise LocalImageNotFound(f"Local image not found: {local_path}")
        return local_path.read_bytes()

    async def resolve(self, public_id: str, file_or_url: str) -> str:
        """Upload one image and return its public URL."""
        data = await self.read_bytes(file_or_url)
        storage_path = storage_path_for(public_id, file_or_url)
        await self.storage.upload(storage_path, data, guess_content_type(storage_path))
        logger.debug(f"Uploaded {file_or_url} -> {storage_path} ({len(data)} bytes)")
        return self.storage.public_url(storage_path)

    def for_product(self, public_id: str):
        """Bind a public id, giving the single-argument callable the planner expects."""

        async def _resolve(file_or_url: str) -> str:
            return await self.resolve(public_id, file_or_url)

        return _resolve
