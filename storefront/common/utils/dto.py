from typing import Any, Dict, Optional


def _money(value) -> float:
    return float(value or 0)


def _iso(value) -> Optional[str]:
    return value.isoformat() + "Z" if value is not None else None


def to_variant_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "size": row.size,
        "price": _money(row.price),
        "stock": int(row.stock or 0),
    }


def to_product_dto(row: Any) -> Dict:
    variants = [to_variant_dto(v) for v in (getattr(row, "variants", None) or [])]
    return {
        "id": row.id,
        "sku": row.sku,
        "name": row.name,
        "description": row.description,
        "price": None if variants or row.price is None else _money(row.price),
        "stock": None if variants else row.stock,
        "images": row.images or [],
        "colors": row.colors or [],
        "variants": variants,
        "isActive": bool(row.is_active),
    }


def to_zone_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "name": row.name,
        "code": row.code,
        "deliveryCharge": _money(row.delivery_charge),
        "estimate": row.estimate,
        "isActive": bool(row.is_active),
    }


def to_cart_line_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "productId": row.product_id,
        "variantId": row.variant_id,
        "name": row.display_name,
        "image": row.display_image,
        "price": _money(row.price),
        "quantity": row.quantity,
        "color": row.color,
        "size": row.size,
    }


def to_cart_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "user": row.user_id,
        "items": [to_cart_line_dto(it) for it in row.items],
        "itemsPrice": _money(row.items_price),
        "taxPrice": _money(row.tax_price),
        "shippingPrice": _money(row.shipping_price),
        "totalAmount": _money(row.total_amount),
        "version": row.version,
    }


def to_order_dto(row: Any, zone: Any = None) -> Dict:
    data = {
        "id": row.id,
        "user": row.user_id,
        "cart": row.cart_id,
        "orderItems": list(row.items or []),
        "note": row.note,
        "shippingLocation": to_zone_dto(zone) if zone is not None else row.shipping_zone_id,
        "shippingAddress": row.shipping_address or {},
        "paymentMethod": row.payment_method,
        "paymentResult": row.payment_result,
        "currency": row.currency,
        "itemsPrice": _money(row.items_price),
        "taxPrice": _money(row.tax_price),
        "shippingPrice": _money(row.shipping_price),
        "totalPrice": _money(row.total_price),
        "isPaid": bool(row.is_paid),
        "paidAt": _iso(row.paid_at),
        "isDelivered": bool(row.is_delivered),
        "deliveredAt": _iso(row.delivered_at),
        "status": row.status,
        "createdAt": _iso(row.created_at),
    }
    return data
