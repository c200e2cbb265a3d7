"""Tests for the order status transition table and its side effects."""

from datetime import datetime
from itertools import product
from types import SimpleNamespace

import pytest

from storefront.common.errors import IllegalPaymentStateError, IllegalTransitionError, ValidationError
from storefront.common.services import order_state
from storefront.common.services.order_state import OrderStatus

NOW = datetime(2026, 1, 2, 3, 4, 5)

LEGAL = {
    ("pending", "processing"),
    ("pending", "cancelled"),
    ("processing", "shipped"),
    ("processing", "cancelled"),
    ("shipped", "delivered"),
}


def _order(status="pending", is_paid=False):
    return SimpleNamespace(
        status=status,
        is_paid=is_paid,
        paid_at=None,
        is_delivered=False,
        delivered_at=None,
        payment_result=None,
        updated_at=None,
    )


@pytest.mark.parametrize("current,requested", sorted(product([s.value for s in OrderStatus], repeat=2)))
def test_transition_table(current, requested):
    order = _order(current)
    if (current, requested) in LEGAL:
        order_state.transition(order, requested, now=NOW)
        assert order.status == requested
    else:
        with pytest.raises(IllegalTransitionError) as exc_info:
            order_state.transition(order, requested, now=NOW)
        assert exc_info.value.current == current
        assert exc_info.value.requested == requested
        assert current in str(exc_info.value) and requested in str(exc_info.value)
        assert order.status == current


def test_delivered_sets_flag_and_timestamp():
    order = _order("shipped", is_paid=True)
    order_state.transition(order, "delivered", now=NOW)
    assert order.is_delivered is True
    assert order.delivered_at == NOW
    assert order.is_paid is True


def test_cancel_clears_paid():
    order = _order("processing", is_paid=True)
    order_state.transition(order, OrderStatus.CANCELLED, now=NOW)
    assert order.status == "cancelled"
    assert order.is_paid is False
    assert order.is_delivered is False


@pytest.mark.parametrize("value", ["refunded", "completed", "not answered", "", None])
def test_unknown_status_is_a_validation_error(value):
    with pytest.raises(ValidationError):
        order_state.transition(_order(), value)


def test_status_is_case_insensitive():
    order = _order()
    order_state.transition(order, " Processing ", now=NOW)
    assert order.status == "processing"


@pytest.mark.parametrize("status", ["pending", "processing", "shipped", "delivered"])
def test_mark_paid_forces_processing(status):
    order = _order(status)
    order_state.mark_paid(order, {"id": "pay-9", "email_address": "a@b.c"}, now=NOW)
    assert order.is_paid is True
    assert order.paid_at == NOW
    assert order.status == "processing"
    assert order.payment_result == {
        "id": "pay-9",
        "status": "COMPLETED",
        "update_time": NOW.isoformat() + "Z",
        "email_address": "a@b.c",
    }


def test_mark_paid_rejects_cancelled():
    order = _order("cancelled")
    with pytest.raises(IllegalPaymentStateError):
        order_state.mark_paid(order, now=NOW)
    assert order.is_paid is False
    assert order.status == "cancelled"


def test_can_transition():
    assert order_state.can_transition("pending", "processing")
    assert not order_state.can_transition("delivered", "cancelled")
