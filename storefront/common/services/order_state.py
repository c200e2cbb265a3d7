"""Order status state machine.

    pending -> processing | cancelled
    processing -> shipped | cancelled
    shipped -> delivered
    delivered, cancelled: terminal

``mark_paid`` is a separate entry point that forces ``processing`` from any
state except ``cancelled``. Both functions mutate the order in place and
leave it untouched when they raise.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import IllegalPaymentStateError, IllegalTransitionError, ValidationError
from ..utils.clock import utcnow


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def parse_status(value: Any) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}", field="status") from None


def allowed_from(status: str):
    return TRANSITIONS.get(parse_status(status), frozenset())


def can_transition(current: str, requested: str) -> bool:
    return parse_status(requested) in allowed_from(current)


def transition(order, requested, now: Optional[datetime] = None) -> OrderStatus:
    """Move ``order`` to ``requested`` and apply the coupled side effects."""
    new_status = parse_status(requested)
    current = order.status
    if new_status not in allowed_from(current):
        raise IllegalTransitionError(current, new_status.value)

    now = now or utcnow()
    if new_status is OrderStatus.DELIVERED:
        order.is_delivered = True
        order.delivered_at = now
    elif new_status is OrderStatus.CANCELLED:
        # cancelled orders never count as paid
        order.is_paid = False
    order.status = new_status.value
    order.updated_at = now
    return new_status


def normalize_payment_result(payload: Optional[Dict[str, Any]], now: datetime) -> Dict[str, str]:
    payload = payload or {}
    return {
        "id": str(payload.get("id") or ""),
        "status": str(payload.get("status") or "COMPLETED"),
        "update_time": str(payload.get("update_time") or now.isoformat() + "Z"),
        "email_address": str(payload.get("email_address") or ""),
    }


def mark_paid(order, payment_result: Optional[Dict[str, Any]] = None, now: Optional[datetime] = None) -> None:
    if order.status == OrderStatus.CANCELLED.value:
        raise IllegalPaymentStateError(order.status)
    now = now or utcnow()
    order.is_paid = True
    order.paid_at = now
    order.status = OrderStatus.PROCESSING.value
    order.payment_result = normalize_payment_result(payment_result, now)
    order.updated_at = now
