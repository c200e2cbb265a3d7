"""Back-office order routes (admin role only)."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..common.errors import ForbiddenError, UnauthorizedError, ValidationError


admin_bp = Blueprint("storefront_admin", __name__, url_prefix="/api")


def _components() -> dict:
    return current_app.extensions["storefront_components"]


def _admin_id() -> str:
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise UnauthorizedError("Authentication required")
    if (request.headers.get("X-User-Role") or "").strip().lower() != "admin":
        raise ForbiddenError("Admin access required")
    return user_id


@admin_bp.before_request
def guard_admin_routes():
    _admin_id()
    return None


@admin_bp.get("/orders")
def list_orders():
    result = _components()["order_service"].list_orders(
        page=request.args.get("page", 1),
        page_size=request.args.get("page_size", 20),
        status=request.args.get("status") or None,
    )
    return jsonify(result)


@admin_bp.put("/orders/<order_id>/status")
def update_order_status(order_id: str):
    payload = request.get_json(silent=True) or {}
    status = payload.get("status") if isinstance(payload, dict) else None
    if not status:
        raise ValidationError("status is required", field="status")
    order = _components()["order_service"].transition(order_id, status, actor=f"admin:{_admin_id()}")
    return jsonify(order)
