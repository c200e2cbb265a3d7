from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from .base import Base


class CartItem(Base):
    __tablename__ = "cart_item"

    id = Column(String(36), primary_key=True)
    cart_id = Column(String(36), ForeignKey("cart.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), ForeignKey("product.id"), nullable=False)
    variant_id = Column(String(36), nullable=True)
    quantity = Column(Integer, nullable=False)
    # server-computed unit price, never taken from the request
    price = Column(Numeric(12, 2), nullable=False)
    color = Column(String(64), nullable=True)
    size = Column(String(64), nullable=True)
    # display cache only
    display_name = Column(String(255), nullable=True)
    display_image = Column(String(1024), nullable=True)
    added_at = Column(DateTime, nullable=False, server_default=func.now())

    cart = relationship("Cart", back_populates="items")

    def matches(self, product_id: str, color, size) -> bool:
        return self.product_id == product_id and self.color == color and self.size == size
