from sqlalchemy import Boolean, Column, DateTime, Numeric, String, func
from .base import Base


class ShippingZone(Base):
    __tablename__ = "shipping_zone"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    code = Column(String(64), nullable=True, index=True)
    delivery_charge = Column(Numeric(12, 2), nullable=False, default=0)
    estimate = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
