from .cart_service import CartService
from .catalog_service import CatalogService
from .order_service import OrderService
from .shipping_service import ShippingService

__all__ = [
    "CartService",
    "CatalogService",
    "OrderService",
    "ShippingService",
]
