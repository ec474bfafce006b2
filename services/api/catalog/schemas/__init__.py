"""Pydantic schemas for API request/response validation."""

from catalog.schemas.catalog import (
    AdminProductSummary,
    DiscoveryPreviewRequest,
    DiscoveryPreviewResponse,
    LookupItem,
    PublicProduct,
    PublicProductsResponse,
    PublishedUpdate,
    SkuActiveUpdate,
)
from catalog.schemas.common import ErrorDetail, ErrorResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "AdminProductSummary",
    "DiscoveryPreviewRequest",
    "DiscoveryPreviewResponse",
    "LookupItem",
    "PublicProduct",
    "PublicProductsResponse",
    "PublishedUpdate",
    "SkuActiveUpdate",
]
