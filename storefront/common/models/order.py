from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from .base import Base
from ..utils.clock import utcnow


class Order(Base):
    """Permanent order record.

    ``items``, ``shipping_price`` and ``total_price`` are frozen at creation.
    ``status`` and the paid/delivered flags change only through
    ``services.order_state``.
    """

    __tablename__ = "order"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    cart_id = Column(String(36), nullable=True)
    request_id = Column(String(128), nullable=True)
    items = Column(JSON, nullable=False)
    note = Column(Text, nullable=True)
    shipping_zone_id = Column(String(36), ForeignKey("shipping_zone.id"), nullable=False)
    shipping_address = Column(JSON, nullable=True)
    payment_method = Column(String(64), nullable=False)
    payment_result = Column(JSON, nullable=True)
    currency = Column(String(3), nullable=False)
    items_price = Column(Numeric(12, 2), nullable=False)
    tax_price = Column(Numeric(12, 2), nullable=False)
    shipping_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime, nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime, nullable=True)
    status = Column(String(32), nullable=False)
    stock_committed = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "request_id", name="uq_order_user_request"),)
    __mapper_args__ = {"version_id_col": version}
