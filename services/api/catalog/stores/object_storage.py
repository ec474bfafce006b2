"""Supabase Storage client (REST API over httpx).

Upload:     POST {url}/storage/v1/object/{bucket}/{path}  (x-upsert: true)
Public URL: {url}/storage/v1/object/public/{bucket}/{path}

Uploads overwrite, so re-running an import with unchanged files is a no-op.
An "already exists" rejection is treated as success.
"""

import logging
from urllib.parse import quote

import httpx

logger = logging.getLogger("uvicorn.error")


class StorageError(RuntimeError):
    """Object storage rejected an upload."""


def _is_already_exists(resp: httpx.Response) -> bool:
    if resp.status_code == 409:
        return True
    body = resp.text.lower()
    return "already exists" in body or "duplicate" in body


class SupabaseStorage:
    """ObjectStorage backed by a public Supabase Storage bucket."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self._http_client = http_client
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _object_url(self, storage_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(storage_path)}"

    def public_url(self, storage_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(storage_path)}"

    async def upload(self, storage_path: str, data: bytes, content_type: str) -> None:
        """Upload (overwrite) one object.

        Raises:
            StorageError: on any rejection other than "already exists", or a
                transport failure.
        """
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        try:
            resp = await client.post(self._object_url(storage_path), content=data, headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Upload failed for {storage_path}: {e}") from e

        if resp.is_success:
            return
        if _is_already_exists(resp):
            logger.info(f"Object already exists, keeping it: {storage_path}")
            return
        raise StorageError(f"Upload failed for {storage_path}: {resp.status_code} {resp.text[:200]}")


class DryRunStorage:
    """Logs uploads instead of performing them."""

    def __init__(self, bucket: str = "product-images"):
        self.bucket = bucket
        self.uploads: list[str] = []

    def public_url(self, storage_path: str) -> str:
        return f"dryrun://{self.bucket}/{storage_path}"

    async def upload(self, storage_path: str, data: bytes, content_type: str) -> None:
        self.uploads.append(storage_path)
        logger.info(f"[dry-run] upload {storage_path} ({content_type}, {len(data)} bytes)")
