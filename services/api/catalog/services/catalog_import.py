"""Catalog import orchestrator: grouped CSV rows + image files -> store upserts.

Flow per product (one product at a time, nothing in parallel):
1. Classify the image files under the import root for this product
2. Merge CSV-declared and discovered images, order colors
3. Expand SKUs (one per color, times storages when listed)
4. Upsert brand, category, product, then each SKU with its price and inventory
5. Upload images one by one, then replace the product's image rows

No transaction spans a product. A fatal error stops the run and leaves what
was already written; re-running converges because every write is keyed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol
from uuid import NAMESPACE_URL, UUID, uuid5

from catalog.services.catalog_rows import (
    CsvImageGroup,
    PriceSpec,
    ProductGroup,
    ProductRecord,
    SkuSpec,
    build_sku_specs,
    merge_image_sources,
)
from catalog.services.image_discovery import (
    DEFAULT_DISCOVERY_CONFIG,
    DiscoveredImageSet,
    DiscoveryConfig,
    classify_image_paths,
    list_image_files,
)
from catalog.services.image_plan import (
    ImageCandidate,
    ResolvedImage,
    order_colors,
    plan_images,
    resolve_images,
)
from catalog.services.image_resolver import ImageResolver
from catalog.services.slugs import slugify

logger = logging.getLogger("uvicorn.error")


class CatalogStore(Protocol):
    """Keyed writes the import needs from the catalog database."""

    async def ensure_brand(self, name: str) -> UUID: ...

    async def ensure_category(self, name: str) -> UUID: ...

    async def upsert_product(self, record: ProductRecord, brand_id: UUID, category_id: UUID) -> UUID: ...

    async def upsert_sku(self, product_id: UUID, sku: SkuSpec) -> UUID: ...

    async def upsert_price(self, sku_id: UUID, price: PriceSpec) -> None: ...

    async def upsert_inventory(self, sku_id: UUID, quantity: int) -> None: ...

    async def replace_images(self, product_id: UUID, images: Sequence[ResolvedImage]) -> None: ...

    async def purge_skus(self, product_id: UUID, code_prefix: str) -> int: ...


# ============================================================
# Dry run
# ============================================================


def _synthetic_id(kind: str, key: str) -> UUID:
    return uuid5(NAMESPACE_URL, f"dryrun:{kind}:{key}")


class DryRunCatalogStore:
    """In-memory CatalogStore that logs every call.

    Ids are derived from the natural keys, so two runs over the same input
    produce the same ids and the same final state.
    """

    def __init__(self) -> None:
        self.brands: dict[str, UUID] = {}
        self.categories: dict[str, UUID] = {}
        self.products: dict[str, ProductRecord] = {}
        self.skus: dict[str, SkuSpec] = {}
        self.sku_products: dict[str, UUID] = {}
        self.prices: dict[UUID, PriceSpec] = {}
        self.inventory: dict[UUID, int] = {}
        self.images: dict[UUID, list[ResolvedImage]] = {}
        self.purged_prefixes: list[str] = []

    async def ensure_brand(self, name: str) -> UUID:
        slug = slugify(name)
        self.brands.setdefault(slug, _synthetic_id("brand", slug))
        logger.info(f"[dry-run] brand {name} ({slug})")
        return self.brands[slug]

    async def ensure_category(self, name: str) -> UUID:
        slug = slugify(name)
        self.categories.setdefault(slug, _synthetic_id("category", slug))
        logger.info(f"[dry-run] category {name} ({slug})")
        return self.categories[slug]

    async def upsert_product(self, record: ProductRecord, brand_id: UUID, category_id: UUID) -> UUID:
        self.products[record.public_id] = record
        logger.info(f"[dry-run] product {record.public_id}: {record.title}")
        return _synthetic_id("product", record.public_id)

    async def upsert_sku(self, product_id: UUID, sku: SkuSpec) -> UUID:
        self.skus[sku.sku_code] = sku
        self.sku_products[sku.sku_code] = product_id
        logger.info(f"[dry-run] sku {sku.sku_code} {sku.attributes}")
        return _synthetic_id("sku", sku.sku_code)

    async def upsert_price(self, sku_id: UUID, price: PriceSpec) -> None:
        self.prices[sku_id] = price

    async def upsert_inventory(self, sku_id: UUID, quantity: int) -> None:
        self.inventory[sku_id] = quantity

    async def replace_images(self, product_id: UUID, images: Sequence[ResolvedImage]) -> None:
        self.images[product_id] = list(images)
        logger.info(f"[dry-run] {len(images)} images for product {product_id}")

    async def purge_skus(self, product_id: UUID, code_prefix: str) -> int:
        self.purged_prefixes.append(code_prefix)
        doomed = [
            code
            for code in self.skus
            if code.startswith(code_prefix) or self.sku_products.get(code) == product_id
        ]
        for code in doomed:
            del self.skus[code]
            self.sku_products.pop(code, None)
            sku_id = _synthetic_id("sku", code)
            self.prices.pop(sku_id, None)
            self.inventory.pop(sku_id, None)
        logger.info(f"[dry-run] purge {len(doomed)} SKUs with prefix {code_prefix}")
        return len(doomed)


# ============================================================
# Planning
# ============================================================


@dataclass
class ImportOptions:
    """Configuration for an import run."""

    # Classify files under the resolver's images root
    discover: bool = True
    # Images.csv rows keyed by product public id
    image_groups: Mapping[str, CsvImageGroup] = field(default_factory=dict)
    discovery_config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG
    default_currency: str = "USD"
    default_quantity: int = 5
    # Delete the product's existing SKUs before upserting (curated imports)
    purge_existing_skus: bool = False


@dataclass
class ProductPlan:
    """Everything needed to write one product, computed before any write."""

    record: ProductRecord
    skus: list[SkuSpec]
    colors: list[str]
    images: list[ImageCandidate]
    discovered: DiscoveredImageSet

    @property
    def public_id(self) -> str:
        return self.record.public_id


@dataclass
class ProductImportResult:
    public_id: str
    product_id: UUID
    skus: int
    images: list[ResolvedImage]
    skipped_images: list[str]


@dataclass
class ImportStats:
    """Statistics from an import run."""

    products: int = 0
    skus: int = 0
    images: int = 0
    skipped_images: int = 0


def _csv_images_for(group: ProductGroup, image_groups: Mapping[str, CsvImageGroup]) -> CsvImageGroup:
    """Images from the rows' images cells, then from Images.csv."""
    combined = group.csv_images()
    extra = image_groups.get(group.public_id)
    if extra:
        for path in extra.common:
            combined.add(path)
        for color, paths in extra.by_color.items():
            for path in paths:
                combined.add(path, color)
    return combined


def plan_product(
    group: ProductGroup,
    image_files: Sequence[str] | None,
    options: ImportOptions | None = None,
) -> ProductPlan:
    """Classify, merge and expand one product.

    Args:
        group: CSV rows of the product.
        image_files: Relative paths under the images root, or None to skip
            discovery.
        options: Import options.
    """
    options = options or ImportOptions()
    public_id = group.public_id
    record = group.record()

    if image_files is None:
        discovered = DiscoveredImageSet()
    else:
        discovered = classify_image_paths(image_files, public_id, record.title, options.discovery_config)
        logger.info(
            f"Discovered {discovered.total} images for {public_id}: hero={'yes' if discovered.hero else 'no'}, "
            f"common={len(discovered.common)}, colors={sorted(discovered.discovered_colors)}"
        )

    merged = merge_image_sources(_csv_images_for(group, options.image_groups), discovered)
    colors = order_colors(group.declared_colors(), discovered.discovered_colors, group.primary_color)
    skus = build_sku_specs(
        group,
        discovered.discovered_colors,
        default_currency=options.default_currency,
        default_quantity=options.default_quantity,
    )
    return ProductPlan(
        record=record,
        skus=skus,
        colors=colors,
        images=plan_images(merged, colors),
        discovered=discovered,
    )


# ============================================================
# Writing
# ============================================================


async def import_product(
    plan: ProductPlan,
    store: CatalogStore,
    resolver: ImageResolver,
    purge_existing_skus: bool = False,
) -> ProductImportResult:
    """Write one planned product to the store.

    Raises whatever the store or resolver raises, except LocalImageNotFound
    which skips that image.
    """
    record = plan.record
    brand_id = await store.ensure_brand(record.brand)
    category_id = await store.ensure_category(record.category)
    product_id = await store.upsert_product(record, brand_id, category_id)

    if purge_existing_skus:
        await store.purge_skus(product_id, f"{record.public_id}-NEW-")

    for sku in plan.skus:
        sku_id = await store.upsert_sku(product_id, sku)
        await store.upsert_price(sku_id, sku.price)
        await store.upsert_inventory(sku_id, sku.quantity)

    resolution = await resolve_images(plan.images, resolver.for_product(record.public_id))
    if resolution.images:
        await store.replace_images(product_id, resolution.images)

    primary = resolution.primary
    logger.info(
        f"Imported {record.public_id}: skus={len(plan.skus)}, images={len(resolution.images)}, "
        f"skipped={len(resolution.skipped)}, colors={plan.colors}, "
        f"primary={primary.source if primary else None}"
    )
    return ProductImportResult(
        public_id=record.public_id,
        product_id=product_id,
        skus=len(plan.skus),
        images=resolution.images,
        skipped_images=resolution.skipped,
    )


async def run_import(
    groups: Iterable[ProductGroup],
    store: CatalogStore,
    resolver: ImageResolver,
    options: ImportOptions | None = None,
) -> ImportStats:
    """Import every product group, strictly one after another.

    Args:
        groups: Grouped CSV rows.
        store: Catalog store (Postgres or dry run).
        resolver: Image resolver bound to object storage and the images root.
        options: Import options.

    Returns:
        ImportStats with totals.
    """
    options = options or ImportOptions()
    image_files = list_image_files(resolver.images_root) if options.discover else None
    if image_files is not None:
        logger.info(f"Found {len(image_files)} image files under {resolver.images_root}")

    stats = ImportStats()
    for group in groups:
        plan = plan_product(group, image_files, options)
        result = await import_product(plan, store, resolver, options.purge_existing_skus)
        stats.products += 1
        stats.skus += result.skus
        stats.images += len(result.images)
        stats.skipped_images += len(result.skipped_images)

    logger.info(
        f"Import complete: products={stats.products}, skus={stats.skus}, "
        f"images={stats.images}, skipped_images={stats.skipped_images}"
    )
    return stats
