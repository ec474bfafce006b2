"""API routes."""

from fastapi import APIRouter

from catalog.routes import admin, catalog

api_router = APIRouter()

# Storefront read endpoints
api_router.include_router(catalog.router, prefix="/v1/catalog", tags=["catalog"])

# Admin endpoints (catalog management, discovery preview)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
