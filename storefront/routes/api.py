"""Customer-facing API routes: cart, checkout and order tracking."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..common.errors import StorefrontError, UnauthorizedError, ValidationError
from ..common.services.logging import log_event


api_bp = Blueprint("storefront_api", __name__, url_prefix="/api")


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_components"]


def _current_user() -> Tuple[str, bool]:
    # identity is established upstream by the auth gateway
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise UnauthorizedError("Authentication required")
    is_admin = (request.headers.get("X-User-Role") or "").strip().lower() == "admin"
    return user_id, is_admin


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


# --- Catalog ---

@api_bp.get("/products/<product_id>")
def get_product(product_id: str):
    return jsonify(_components()["catalog"].get_product(product_id))


@api_bp.get("/shipping")
def list_shipping_zones():
    return jsonify(_components()["shipping"].list_active_zones())


# --- Cart ---

@api_bp.get("/cart")
def get_cart():
    user_id, _ = _current_user()
    return jsonify(_components()["cart_service"].get(user_id))


@api_bp.post("/cart")
def add_to_cart():
    user_id, _ = _current_user()
    payload = _payload()
    product_id = str(payload.get("productId") or "").strip()
    if not product_id:
        raise ValidationError("productId is required", field="productId")

    # any client-sent price is ignored
    cart = _components()["cart_service"].add_line(
        user_id,
        product_id,
        payload.get("quantity", 1),
        color=payload.get("color"),
        variant_id=payload.get("variantId"),
        size=payload.get("size"),
    )
    return jsonify(cart), 201


@api_bp.put("/cart/items/<item_id>")
def update_cart_item(item_id: str):
    user_id, _ = _current_user()
    cart = _components()["cart_service"].update_line(user_id, item_id, _payload().get("quantity"))
    return jsonify(cart)


@api_bp.delete("/cart/items/<item_id>")
def remove_cart_item(item_id: str):
    user_id, _ = _current_user()
    cart = _components()["cart_service"].remove_line(user_id, item_id)
    if cart is None:
        return jsonify({"message": "Cart cleared", "cart": None})
    return jsonify(cart)


@api_bp.delete("/cart/clear")
def clear_cart():
    user_id, _ = _current_user()
    _components()["cart_service"].clear(user_id)
    return jsonify({"message": "Cart cleared successfully", "cart": None})


# --- Orders ---

@api_bp.post("/orders")
def create_order():
    user_id, _ = _current_user()
    payload = _payload()
    order, created = _components()["order_service"].create_order(
        user_id=user_id,
        shipping_zone_id=payload.get("shippingLocationId"),
        payment_method=payload.get("paymentMethod"),
        shipping_address=payload.get("shippingAddress") if isinstance(payload.get("shippingAddress"), dict) else None,
        tax_price=payload.get("taxPrice", 0),
        note=payload.get("note"),
        request_id=request.headers.get("Idempotency-Key"),
    )
    if not created:
        return jsonify(order), 200

    # the order stands even if clearing fails; a leftover cart stays re-orderable
    try:
        _components()["cart_service"].clear(user_id)
    except (StorefrontError, SQLAlchemyError) as exc:
        log_event("warning", "order.cart_clear_failed", order_id=order["id"], user_id=user_id, error=str(exc))
    return jsonify(order), 201


@api_bp.get("/orders/mine")
def my_orders():
    user_id, _ = _current_user()
    return jsonify(_components()["order_service"].list_user_orders(user_id))


@api_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    user_id, is_admin = _current_user()
    return jsonify(_components()["order_service"].get_order(order_id, user_id=user_id, is_admin=is_admin))


@api_bp.put("/orders/<order_id>/pay")
def pay_order(order_id: str):
    user_id, is_admin = _current_user()
    order = _components()["order_service"].mark_paid(
        order_id,
        _payload(),
        user_id=user_id,
        is_admin=is_admin,
    )
    return jsonify(order)


@api_bp.put("/orders/<order_id>/cancel")
def cancel_order(order_id: str):
    user_id, _ = _current_user()
    return jsonify(_components()["order_service"].cancel_by_owner(order_id, user_id=user_id))
