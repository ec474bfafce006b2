"""Storefront catalog read endpoints.

GET /v1/catalog/brands     - brands A-Z
GET /v1/catalog/categories - categories A-Z
GET /v1/catalog/products   - active SKUs of published products

Routers are thin: queries live in stores.catalog.
"""

from fastapi import APIRouter

from catalog.schemas import LookupItem, PublicProduct, PublicProductsResponse
from catalog.stores import catalog as catalog_store

router = APIRouter()


@router.get("/brands", response_model=list[LookupItem])
async def get_brands() -> list[LookupItem]:
    brands = await catalog_store.list_brands()
    return [LookupItem.model_validate(b) for b in brands]


@router.get("/categories", response_model=list[LookupItem])
async def get_categories() -> list[LookupItem]:
    categories = await catalog_store.list_categories()
    return [LookupItem.model_validate(c) for c in categories]


@router.get("/products", response_model=PublicProductsResponse)
async def get_products() -> PublicProductsResponse:
    """List purchasable SKUs with primary image and effective price."""
    rows = await catalog_store.list_public_products()
    items = [PublicProduct(**row) for row in rows]
    return PublicProductsResponse(items=items, count=len(items))
