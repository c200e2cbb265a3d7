from .base import Base
from .cart import Cart
from .cart_item import CartItem
from .order import Order
from .product import Product, ProductVariant
from .shipping_zone import ShippingZone

__all__ = [
    "Base",
    "Cart",
    "CartItem",
    "Order",
    "Product",
    "ProductVariant",
    "ShippingZone",
]
