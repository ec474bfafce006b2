"""Shared wiring for the import scripts.

Builds the store and image resolver for a run:
- dry run: in-memory store + logging storage (local files are still read)
- real run: Postgres (DATABASE_URL) + Supabase Storage (SUPABASE_URL + key)

Configuration is checked before anything is read or written.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from catalog.services.catalog_import import CatalogStore, DryRunCatalogStore
from catalog.services.image_resolver import ImageResolver
from catalog.settings import get_settings
from catalog.stores.catalog import PostgresCatalogStore
from catalog.stores.object_storage import DryRunStorage, SupabaseStorage
from catalog.stores.postgres import close_db, init_db, ping_db

logger = logging.getLogger("uvicorn.error")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )


@asynccontextmanager
async def import_runtime(images_dir: str, dry_run: bool) -> AsyncIterator[tuple[CatalogStore, ImageResolver]]:
    """Yield (store, resolver) and release connections afterwards.

    Raises:
        ConfigError: missing DATABASE_URL or Supabase credentials (real runs only).
    """
    settings = get_settings()

    if dry_run:
        logger.info("Dry run: nothing will be written or uploaded")
        resolver = ImageResolver(
            DryRunStorage(settings.storage_bucket),
            images_dir,
            timeout=settings.http_timeout_seconds,
        )
        try:
            yield DryRunCatalogStore(), resolver
        finally:
            await resolver.close()
        return

    settings.require_database_url()
    base_url, api_key = settings.require_storage_credentials()

    storage = SupabaseStorage(
        base_url,
        api_key,
        settings.storage_bucket,
        timeout=settings.http_timeout_seconds,
    )
    resolver = ImageResolver(storage, images_dir, timeout=settings.http_timeout_seconds)

    await init_db()
    try:
        await ping_db()
        yield PostgresCatalogStore(), resolver
    finally:
        await resolver.close()
        await storage.close()
        await close_db()
