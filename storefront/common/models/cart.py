from sqlalchemy import Column, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from .base import Base


class Cart(Base):
    """One cart per user. The row is deleted rather than left without items."""

    __tablename__ = "cart"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, unique=True)
    items_price = Column(Numeric(12, 2), nullable=False, default=0)
    tax_price = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )

    __mapper_args__ = {"version_id_col": version}
