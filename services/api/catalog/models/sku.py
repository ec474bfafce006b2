"""SKU, price and inventory models.

A SKU is one purchasable variant: product + condition + attributes
(color, storage, ram, connectivity, chip_tier).

Example sku_code: "IPH16-NEW-128GB-BLACK"
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Numeric, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from catalog.stores.postgres import Base


class ProductSku(Base):
    """Purchasable variant of a product."""

    __tablename__ = "product_skus"
    __table_args__ = (
        CheckConstraint("condition IN ('new', 'second_hand')", name="ck_product_skus_condition"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )

    # Stable import key
    sku_code: Mapped[str] = mapped_column(String(80), unique=True, index=True)

    condition: Mapped[str] = mapped_column(String(20), default="new")  # new/second_hand
    attributes: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ProductSku {self.sku_code}>"


class SkuPrice(Base):
    """Price of a SKU. At most one discount mode is set."""

    __tablename__ = "sku_prices"
    __table_args__ = (
        CheckConstraint(
            "discount_percent IS NULL OR discount_amount IS NULL",
            name="ck_sku_prices_single_discount",
        ),
    )

    sku_id: Mapped[UUID] = mapped_column(
        ForeignKey("product_skus.id", ondelete="CASCADE"),
        primary_key=True,
    )
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    base_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False))
    discount_percent: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False))
    discount_amount: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False))

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class SkuInventory(Base):
    """Stock on hand for a SKU."""

    __tablename__ = "sku_inventory"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_sku_inventory_quantity"),)

    sku_id: Mapped[UUID] = mapped_column(
        ForeignKey("product_skus.id", ondelete="CASCADE"),
        primary_key=True,
    )
    quantity: Mapped[int] = mapped_column(default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
