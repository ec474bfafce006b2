"""Catalog repository: keyed upserts used by the import, queries used by the API.

Every write runs in its own session and commits immediately. A failed run
leaves already-written rows in place; re-running converges because every
write is keyed (brand/category slug, product public_id, sku_code, sku_id).
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects.postgresql import insert

from catalog.models import Brand, Category, Product, ProductImage, ProductSku, SkuInventory, SkuPrice
from catalog.services.catalog_rows import PriceSpec, ProductRecord, SkuSpec, effective_price
from catalog.services.image_plan import ResolvedImage
from catalog.services.slugs import slugify
from catalog.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


# ============================================================
# Import writes
# ============================================================


class PostgresCatalogStore:
    """CatalogStore backed by the Supabase Postgres database."""

    async def _ensure_lookup(self, model: type[Brand] | type[Category], name: str) -> UUID:
        slug = slugify(name)
        stmt = insert(model).values(name=name, slug=slug)
        # No-op update so RETURNING yields the existing row's id
        stmt = stmt.on_conflict_do_update(
            index_elements=[model.slug],
            set_={"slug": stmt.excluded.slug},
        ).returning(model.id)
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def ensure_brand(self, name: str) -> UUID:
        return await self._ensure_lookup(Brand, name)

    async def ensure_category(self, name: str) -> UUID:
        return await self._ensure_lookup(Category, name)

    async def upsert_product(self, record: ProductRecord, brand_id: UUID, category_id: UUID) -> UUID:
        values = {
            "public_id": record.public_id,
            "brand_id": brand_id,
            "category_id": category_id,
            "family": record.family,
            "model": record.model,
            "variant": record.variant,
            "title": record.title,
            "description": record.description,
            "published": record.published,
        }
        stmt = insert(Product).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.public_id],
            set_={k: stmt.excluded[k] for k in values if k != "public_id"},
        ).returning(Product.id)
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def upsert_sku(self, product_id: UUID, sku: SkuSpec) -> UUID:
        values = {
            "product_id": product_id,
            "sku_code": sku.sku_code,
            "condition": sku.condition,
            "attributes": dict(sku.attributes),
            "is_active": sku.is_active,
        }
        stmt = insert(ProductSku).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProductSku.sku_code],
            set_={k: stmt.excluded[k] for k in values if k != "sku_code"},
        ).returning(ProductSku.id)
        async with get_session() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def upsert_price(self, sku_id: UUID, price: PriceSpec) -> None:
        values = {
            "sku_id": sku_id,
            "currency": price.currency,
            "base_price": price.base_price,
            "discount_percent": price.discount_percent,
            "discount_amount": price.discount_amount,
        }
        stmt = insert(SkuPrice).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SkuPrice.sku_id],
            set_={k: stmt.excluded[k] for k in values if k != "sku_id"},
        )
        async with get_session() as session:
            await session.execute(stmt)

    async def upsert_inventory(self, sku_id: UUID, quantity: int) -> None:
        stmt = insert(SkuInventory).values(sku_id=sku_id, quantity=quantity)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SkuInventory.sku_id],
            set_={"quantity": stmt.excluded.quantity},
        )
        async with get_session() as session:
            await session.execute(stmt)

    async def replace_images(self, product_id: UUID, images: Sequence[ResolvedImage]) -> None:
        """Delete every image row of the product, then insert the new set."""
        async with get_session() as session:
            await session.execute(delete(ProductImage).where(ProductImage.product_id == product_id))
            session.add_all(
                ProductImage(
                    product_id=product_id,
                    url=img.url,
                    is_primary=img.is_primary,
                    sort_order=img.sort_order,
                    color=img.color,
                )
                for img in images
            )

    async def purge_skus(self, product_id: UUID, code_prefix: str) -> int:
        """Delete every SKU of the product and any SKU whose code starts with code_prefix.

        Prices and inventory go with them (ON DELETE CASCADE).
        """
        stmt = delete(ProductSku).where(
            or_(
                ProductSku.product_id == product_id,
                ProductSku.sku_code.startswith(code_prefix, autoescape=True),
            )
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            deleted = result.rowcount or 0
        logger.info(f"Purged {deleted} SKUs with prefix {code_prefix}")
        return deleted


# ============================================================
# Read queries (API)
# ============================================================


@dataclass
class ProductSummary:
    """Admin listing row: a product with its first SKU."""

    product_id: UUID
    title: str
    published: bool
    brand_name: str | None
    category_name: str | None
    primary_image: str | None
    sku_id: UUID | None
    sku_active: bool | None
    condition: str | None
    effective_price: float | None
    quantity: int | None
    sku_count: int
    image_count: int


def _price_of(price: SkuPrice | None) -> float | None:
    if price is None:
        return None
    return effective_price(price.base_price, price.discount_percent, price.discount_amount)


async def list_brands() -> list[Brand]:
    async with get_session() as session:
        result = await session.execute(select(Brand).order_by(Brand.name))
        return list(result.scalars().all())


async def list_categories() -> list[Category]:
    async with get_session() as session:
        result = await session.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())


async def _primary_images(session, product_ids: Sequence[UUID]) -> dict[UUID, str]:
    """Primary image url per product (lowest sort_order when none is flagged)."""
    if not product_ids:
        return {}
    result = await session.execute(
        select(ProductImage)
        .where(ProductImage.product_id.in_(product_ids))
        .order_by(ProductImage.is_primary.desc(), ProductImage.sort_order)
    )
    out: dict[UUID, str] = {}
    for image in result.scalars().all():
        out.setdefault(image.product_id, image.url)
    return out


async def list_public_products() -> list[dict[str, Any]]:
    """One row per active SKU of every published product."""
    async with get_session() as session:
        result = await session.execute(
            select(Product, Brand.name, Category.name, ProductSku, SkuPrice, SkuInventory)
            .join(Brand, Brand.id == Product.brand_id)
            .join(Category, Category.id == Product.category_id)
            .join(ProductSku, ProductSku.product_id == Product.id)
            .outerjoin(SkuPrice, SkuPrice.sku_id == ProductSku.id)
            .outerjoin(SkuInventory, SkuInventory.sku_id == ProductSku.id)
            .where(Product.published.is_(True), ProductSku.is_active.is_(True))
            .order_by(Product.title, ProductSku.sku_code)
        )
        rows = result.all()
        primary = await _primary_images(session, list({row[0].id for row in rows}))

    items: list[dict[str, Any]] = []
    for product, brand_name, category_name, sku, price, inventory in rows:
        items.append(
            {
                "product_id": product.id,
                "public_id": product.public_id,
                "title": product.title,
                "description": product.description,
                "family": product.family,
                "model": product.model,
                "variant": product.variant,
                "brand": brand_name,
                "category": category_name,
                "primary_image": primary.get(product.id),
                "sku_id": sku.id,
                "sku_code": sku.sku_code,
                "condition": sku.condition,
                "attributes": sku.attributes or {},
                "currency": price.currency if price else None,
                "effective_price": _price_of(price),
                "quantity": inventory.quantity if inventory else None,
            }
        )
    return items


async def list_product_summaries(limit: int = 50) -> list[ProductSummary]:
    """Newest products first, each with its first SKU's price and stock."""
    async with get_session() as session:
        result = await session.execute(
            select(Product, Brand.name, Category.name)
            .outerjoin(Brand, Brand.id == Product.brand_id)
            .outerjoin(Category, Category.id == Product.category_id)
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        products = result.all()
        product_ids = [row[0].id for row in products]
        if not product_ids:
            return []

        primary = await _primary_images(session, product_ids)

        sku_result = await session.execute(
            select(ProductSku, SkuPrice, SkuInventory)
            .outerjoin(SkuPrice, SkuPrice.sku_id == ProductSku.id)
            .outerjoin(SkuInventory, SkuInventory.sku_id == ProductSku.id)
            .where(ProductSku.product_id.in_(product_ids))
            .order_by(ProductSku.created_at, ProductSku.sku_code)
        )
        skus: dict[UUID, list[tuple[ProductSku, SkuPrice | None, SkuInventory | None]]] = {}
        for sku, price, inventory in sku_result.all():
            skus.setdefault(sku.product_id, []).append((sku, price, inventory))

        image_result = await session.execute(
            select(ProductImage.product_id).where(ProductImage.product_id.in_(product_ids))
        )
        image_counts: dict[UUID, int] = {}
        for (pid,) in image_result.all():
            image_counts[pid] = image_counts.get(pid, 0) + 1

    summaries: list[ProductSummary] = []
    for product, brand_name, category_name in products:
        product_skus = skus.get(product.id, [])
        first = product_skus[0] if product_skus else None
        sku, price, inventory = first if first else (None, None, None)
        summaries.append(
            ProductSummary(
                product_id=product.id,
                title=product.title,
                published=product.published,
                brand_name=brand_name,
                category_name=category_name,
                primary_image=primary.get(product.id),
                sku_id=sku.id if sku else None,
                sku_active=sku.is_active if sku else None,
                condition=sku.condition if sku else None,
                effective_price=_price_of(price),
                quantity=inventory.quantity if inventory else None,
                sku_count=len(product_skus),
                image_count=image_counts.get(product.id, 0),
            )
        )
    return summaries


async def set_product_published(product_id: UUID, published: bool) -> bool:
    """Returns False when the product does not exist."""
    async with get_session() as session:
        result = await session.execute(
            update(Product).where(Product.id == product_id).values(published=published)
        )
        return bool(result.rowcount)


async def set_sku_active(sku_id: UUID, is_active: bool) -> bool:
    async with get_session() as session:
        result = await session.execute(
            update(ProductSku).where(ProductSku.id == sku_id).values(is_active=is_active)
        )
        return bool(result.rowcount)


async def delete_product(product_id: UUID) -> bool:
    """Delete a product; SKUs, prices, inventory and images cascade."""
    async with get_session() as session:
        result = await session.execute(delete(Product).where(Product.id == product_id))
        return bool(result.rowcount)
