"""Admin endpoints for catalog management.

These endpoints are intended for the back-office catalog manager.
In production, consider adding authentication (API key or admin token).
"""

import asyncio
import logging
from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from catalog.schemas import (
    AdminProductSummary,
    DiscoveryPreviewRequest,
    DiscoveryPreviewResponse,
    PublishedUpdate,
    SkuActiveUpdate,
)
from catalog.services.image_discovery import classify_image_paths, list_image_files, resolve_strategy
from catalog.services.image_plan import MergedImages, order_colors, plan_images
from catalog.settings import get_settings
from catalog.stores import catalog as catalog_store

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/products", response_model=list[AdminProductSummary])
async def list_products(
    limit: int = Query(default=50, ge=1, le=500, description="Max products (newest first)"),
) -> list[AdminProductSummary]:
    summaries = await catalog_store.list_product_summaries(limit=limit)
    return [AdminProductSummary(**asdict(s)) for s in summaries]


@router.patch("/products/{product_id}/published")
async def set_product_published(product_id: UUID, body: PublishedUpdate) -> dict:
    if not await catalog_store.set_product_published(product_id, body.published):
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    logger.info(f"Product {product_id} published={body.published}")
    return {"productId": str(product_id), "published": body.published}


@router.patch("/skus/{sku_id}/active")
async def set_sku_active(sku_id: UUID, body: SkuActiveUpdate) -> dict:
    if not await catalog_store.set_sku_active(sku_id, body.is_active):
        raise HTTPException(status_code=404, detail=f"SKU not found: {sku_id}")
    logger.info(f"SKU {sku_id} is_active={body.is_active}")
    return {"skuId": str(sku_id), "isActive": body.is_active}


@router.delete("/products/{product_id}")
async def delete_product(product_id: UUID) -> dict:
    """Delete a product with its SKUs, prices, inventory and image rows.

    Uploaded objects stay in storage.
    """
    if not await catalog_store.delete_product(product_id):
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    logger.info(f"Product {product_id} deleted")
    return {"productId": str(product_id), "deleted": True}


@router.post("/discovery/preview", response_model=DiscoveryPreviewResponse)
async def preview_discovery(request: DiscoveryPreviewRequest) -> DiscoveryPreviewResponse:
    """Show how image files would be classified and ordered for a product.

    Nothing is uploaded or written.
    """
    paths = request.paths
    if paths is None:
        paths = await asyncio.to_thread(list_image_files, get_settings().import_images_dir)

    strategy = resolve_strategy(request.public_id, request.title)
    discovered = classify_image_paths(paths, request.public_id, request.title)
    colors = order_colors(request.csv_colors, discovered.discovered_colors, request.primary_color)
    candidates = plan_images(
        MergedImages(hero=discovered.hero, common=discovered.common, by_color=discovered.by_color),
        colors,
    )

    return DiscoveryPreviewResponse(
        public_id=request.public_id,
        strategy=strategy.kind,
        prefix=strategy.prefix,
        hero=discovered.hero,
        common=discovered.common,
        by_color=discovered.by_color,
        color_order=colors,
        upload_order=[c.path for c in candidates],
    )
