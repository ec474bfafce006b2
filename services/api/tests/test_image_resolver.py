"""Tests for image resolution and Supabase Storage uploads."""

import httpx
import pytest

from catalog.services.image_resolver import (
    ImageResolver,
    LocalImageNotFound,
    RemoteFetchError,
    guess_content_type,
    is_remote,
    storage_path_for,
)
from catalog.stores.object_storage import DryRunStorage, StorageError, SupabaseStorage


def test_storage_path_for():
    assert storage_path_for("IPH16", "iphone 16/iPhone16 Ultramarine 3.png") == (
        "product/IPH16/iPhone16 Ultramarine 3.png"
    )
    assert storage_path_for("IPH16", "https://cdn.test/img/a.jpg?w=200") == "product/IPH16/a.jpg"
    assert storage_path_for("IPH16", "sub\\dir\\b.webp") == "product/IPH16/b.webp"


def test_guess_content_type():
    assert guess_content_type("a.JPG") == "image/jpeg"
    assert guess_content_type("a.jpeg") == "image/jpeg"
    assert guess_content_type("a.png") == "image/png"
    assert guess_content_type("a.webp") == "image/webp"
    assert guess_content_type("a.unknownext") == "application/octet-stream"


def test_is_remote():
    assert is_remote("https://x.test/a.jpg")
    assert is_remote("HTTP://x.test/a.jpg")
    assert not is_remote("images/a.jpg")


class TestImageResolver:
    """Tests for local and remote image resolution."""

    @pytest.mark.asyncio
    async def test_local_file_uploaded(self, tmp_path):
        (tmp_path / "iphone 16").mkdir()
        (tmp_path / "iphone 16" / "black-1.png").write_bytes(b"png-bytes")
        storage = DryRunStorage("product-images")
        resolver = ImageResolver(storage, tmp_path)

        url = await resolver.resolve("IPH16", "iphone 16/black-1.png")

        assert url == "dryrun://product-images/product/IPH16/black-1.png"
        assert storage.uploads == ["product/IPH16/black-1.png"]

    @pytest.mark.asyncio
    async def test_missing_local_file(self, tmp_path):
        resolver = ImageResolver(DryRunStorage(), tmp_path)
        with pytest.raises(LocalImageNotFound):
            await resolver.resolve("IPH16", "missing.jpg")

    @pytest.mark.asyncio
    async def test_remote_download(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/img/a.jpg"
            return httpx.Response(200, content=b"jpeg-bytes")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        resolver = ImageResolver(DryRunStorage(), tmp_path, http_client=client)

        assert await resolver.read_bytes("https://cdn.test/img/a.jpg") == b"jpeg-bytes"
        url = await resolver.for_product("IPH16")("https://cdn.test/img/a.jpg")
        assert url == "dryrun://product-images/product/IPH16/a.jpg"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_remote_non_ok_is_fatal(self, tmp_path):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        resolver = ImageResolver(DryRunStorage(), tmp_path, http_client=client)

        with pytest.raises(RemoteFetchError, match="404"):
            await resolver.resolve("IPH16", "https://cdn.test/a.jpg")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_remote_transport_error_is_fatal(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        resolver = ImageResolver(DryRunStorage(), tmp_path, http_client=client)

        with pytest.raises(RemoteFetchError):
            await resolver.resolve("IPH16", "https://cdn.test/a.jpg")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self, tmp_path):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        resolver = ImageResolver(DryRunStorage(), tmp_path, http_client=client)
        await resolver.close()
        assert not client.is_closed
        await client.aclose()


class TestSupabaseStorage:
    """Tests for the Supabase Storage REST client."""

    def _storage(self, handler) -> SupabaseStorage:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SupabaseStorage("https://proj.supabase.co/", "service-key", "product-images", http_client=client)

    def test_public_url(self):
        storage = SupabaseStorage("https://proj.supabase.co/", "k", "product-images")
        assert storage.public_url("product/IPH16/a b.png") == (
            "https://proj.supabase.co/storage/v1/object/public/product-images/product/IPH16/a%20b.png"
        )

    @pytest.mark.asyncio
    async def test_upload_request(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "product-images/product/IPH16/a.jpg"})

        storage = self._storage(handler)
        await storage.upload("product/IPH16/a.jpg", b"bytes", "image/jpeg")
        await storage.close()

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://proj.supabase.co/storage/v1/object/product-images/product/IPH16/a.jpg"
        assert request.headers["x-upsert"] == "true"
        assert request.headers["authorization"] == "Bearer service-key"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["content-type"] == "image/jpeg"
        assert request.content == b"bytes"

    @pytest.mark.asyncio
    async def test_already_exists_suppressed(self):
        storage = self._storage(
            lambda r: httpx.Response(400, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})
        )
        await storage.upload("product/IPH16/a.jpg", b"bytes", "image/jpeg")

        conflict = self._storage(lambda r: httpx.Response(409))
        await conflict.upload("product/IPH16/a.jpg", b"bytes", "image/jpeg")

    @pytest.mark.asyncio
    async def test_other_errors_raise(self):
        storage = self._storage(lambda r: httpx.Response(403, json={"message": "new row violates row-level security policy"}))
        with pytest.raises(StorageError, match="403"):
            await storage.upload("product/IPH16/a.jpg", b"bytes", "image/jpeg")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(StorageError):
            await self._storage(handler).upload("product/IPH16/a.jpg", b"bytes", "image/jpeg")
