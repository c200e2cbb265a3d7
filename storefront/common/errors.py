"""Business exceptions for the storefront core.

Every error carries a machine-readable ``kind`` and the HTTP status the API
boundary should answer with. Extra attributes listed in ``details()`` are
merged into the JSON error body.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base exception for all storefront business errors."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.kind, "message": self.message}
        body.update(self.details())
        return body


class ValidationError(StorefrontError):
    """Raised for malformed input: quantity below 1, missing fields."""

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"field": self.field} if self.field else {}


class UnauthorizedError(StorefrontError):
    kind = "unauthorized"
    status_code = 401


class ForbiddenError(StorefrontError):
    kind = "forbidden"
    status_code = 403


class NotFoundError(StorefrontError):
    """Raised when a product, cart, line, order or shipping zone is absent."""

    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource.capitalize()} not found"
        if resource_id:
            msg = f"{msg}: {resource_id}"
        super().__init__(msg)

    def details(self) -> Dict[str, Any]:
        return {"resource": self.resource}


class InvalidSelectionError(StorefrontError):
    """Raised when a product has variants but none matched the selector."""

    kind = "invalid_selection"

    def __init__(self, product_id: str, variant_id: Optional[str] = None, size: Optional[str] = None):
        self.product_id = product_id
        self.variant_id = variant_id
        self.size = size
        if variant_id:
            msg = f"Variant {variant_id} does not belong to product {product_id}"
        elif size:
            msg = f"Size {size!r} is not available for product {product_id}"
        else:
            msg = f"Product {product_id} requires a size selection"
        super().__init__(msg)


class InsufficientStockError(StorefrontError):
    """Raised when a requested quantity exceeds the stock ceiling.

    ``available`` is the actual remaining quantity, so callers can clamp
    and retry instead of starting over.
    """

    kind = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Only {available} left in stock for product {product_id} (requested {requested})"
        )

    def details(self) -> Dict[str, Any]:
        return {"available": self.available, "requested": self.requested}


class EmptyCartError(StorefrontError):
    kind = "empty_cart"

    def __init__(self):
        super().__init__("Cannot create an order from an empty cart")


class InvalidShippingZoneError(StorefrontError):
    """Raised when the shipping zone is missing or inactive."""

    kind = "invalid_shipping_zone"

    def __init__(self, zone_id: Optional[str], reason: str = "inactive"):
        self.zone_id = zone_id
        self.reason = reason
        if reason == "missing":
            self.status_code = 404
        super().__init__(f"Invalid or inactive shipping zone: {zone_id}")


class IllegalTransitionError(StorefrontError):
    kind = "illegal_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current!r} to {requested!r}")

    def details(self) -> Dict[str, Any]:
        return {"current": self.current, "requested": self.requested}


class IllegalPaymentStateError(StorefrontError):
    kind = "illegal_payment_state"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Cannot pay for a {status} order")


class ConcurrencyConflictError(StorefrontError):
    """Raised when a concurrent writer changed the row first."""

    kind = "conflict"
    status_code = 409

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource.capitalize()} was modified concurrently, please retry")
