"""Product model.

A product is the logical item shown in the storefront ("Apple iPhone 16").
Purchasable variants live in product_skus.

public_id is the import idempotency key (e.g. "IPH16").
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog.stores.postgres import Base


class Product(Base):
    """Storefront product."""

    __tablename__ = "products"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Stable import key (uppercase alnum + hyphens)
    public_id: Mapped[str] = mapped_column(String(60), unique=True, index=True)

    brand_id: Mapped[UUID] = mapped_column(ForeignKey("brands.id"), index=True)
    category_id: Mapped[UUID] = mapped_column(ForeignKey("categories.id"), index=True)

    family: Mapped[str | None] = mapped_column(String(100))  # e.g., "iPhone"
    model: Mapped[str | None] = mapped_column(String(100))  # e.g., "iPhone 16"
    variant: Mapped[str | None] = mapped_column(String(100))  # e.g., "Pro Max"
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text)
    published: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.public_id}>"
