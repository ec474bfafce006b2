"""Schemas for the catalog read API (/v1/catalog) and admin API (/v1/admin)."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class LookupItem(BaseModel):
    """A brand or category."""

    id: UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class PublicProduct(BaseModel):
    """One purchasable SKU of a published product."""

    product_id: UUID = Field(alias="productId")
    public_id: str = Field(alias="publicId")
    title: str
    description: str | None = None
    family: str | None = None
    model: str | None = None
    variant: str | None = None
    brand: str
    category: str
    primary_image: str | None = Field(alias="primaryImage", default=None)
    sku_id: UUID = Field(alias="skuId")
    sku_code: str = Field(alias="skuCode")
    condition: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    currency: str | None = None
    effective_price: float | None = Field(alias="effectivePrice", default=None)
    quantity: int | None = None

    model_config = {"populate_by_name": True}


class PublicProductsResponse(BaseModel):
    items: list[PublicProduct]
    count: int


class AdminProductSummary(BaseModel):
    """Admin listing row: a product with its first SKU."""

    product_id: UUID = Field(alias="productId")
    title: str
    published: bool
    brand_name: str | None = Field(alias="brandName", default=None)
    category_name: str | None = Field(alias="categoryName", default=None)
    primary_image: str | None = Field(alias="primaryImage", default=None)
    sku_id: UUID | None = Field(alias="skuId", default=None)
    sku_active: bool | None = Field(alias="skuActive", default=None)
    condition: str | None = None
    effective_price: float | None = Field(alias="effectivePrice", default=None)
    quantity: int | None = None
    sku_count: int = Field(alias="skuCount", default=0)
    image_count: int = Field(alias="imageCount", default=0)

    model_config = {"populate_by_name": True}


class PublishedUpdate(BaseModel):
    published: bool


class SkuActiveUpdate(BaseModel):
    is_active: bool = Field(alias="isActive")

    model_config = {"populate_by_name": True}


class DiscoveryPreviewRequest(BaseModel):
    """Classify a list of relative image paths (or the import folder) for one product."""

    public_id: str = Field(alias="publicId", min_length=1)
    title: str | None = None
    paths: list[str] | None = Field(
        default=None,
        description="Relative image paths; when omitted the configured import folder is scanned",
    )
    csv_colors: list[str] = Field(alias="csvColors", default_factory=list)
    primary_color: str | None = Field(alias="primaryColor", default=None)

    model_config = {"populate_by_name": True}


class DiscoveryPreviewResponse(BaseModel):
    public_id: str = Field(alias="publicId")
    strategy: str
    prefix: str
    hero: str | None = None
    common: list[str] = Field(default_factory=list)
    by_color: dict[str, list[str]] = Field(alias="byColor", default_factory=dict)
    color_order: list[str] = Field(alias="colorOrder", default_factory=list)
    upload_order: list[str] = Field(alias="uploadOrder", default_factory=list)

    model_config = {"populate_by_name": True}
