"""Product image model.

color is NULL for common images (shown whatever color is selected).
Exactly one image per product has is_primary = true when it has any images.
"""

from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from catalog.stores.postgres import Base


class ProductImage(Base):
    """Image row; the import replaces all rows of a product at once."""

    __tablename__ = "product_images"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )
    url: Mapped[str] = mapped_column(Text)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(default=0)
    color: Mapped[str | None] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<ProductImage {self.url} primary={self.is_primary}>"
