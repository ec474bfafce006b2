"""SQLAlchemy ORM models.

Models represent the storefront catalog tables:
- brands / categories: lookups, keyed by slug
- products: logical products, keyed by public_id
- product_skus: purchasable variants, keyed by sku_code
- sku_prices / sku_inventory: one row per SKU
- product_images: ordered images with a single primary
"""

from catalog.models.brand import Brand, Category
from catalog.models.image import ProductImage
from catalog.models.product import Product
from catalog.models.sku import ProductSku, SkuInventory, SkuPrice

__all__ = ["Brand", "Category", "Product", "ProductSku", "SkuPrice", "SkuInventory", "ProductImage"]
