from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from .base import Base


class Product(Base):
    """Catalog product.

    ``price``/``stock`` apply only when the product has no variants. A null
    ``stock`` means the stock was never set and is treated as unbounded.
    """

    __tablename__ = "product"

    id = Column(String(36), primary_key=True)
    sku = Column(String(128), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    stock = Column(Integer, nullable=True)
    images = Column(JSON, nullable=True)
    colors = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.sort_order",
    )

    @property
    def primary_image(self) -> str:
        images = self.images or []
        if not images:
            return ""
        first = images[0]
        return first.get("url", "") if isinstance(first, dict) else str(first)


class ProductVariant(Base):
    """A size option carrying its own price and stock."""

    __tablename__ = "product_variant"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    size = Column(String(64), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")
