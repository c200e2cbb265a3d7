from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import update

from ..db.session import flush_or_conflict, get_session
from ..errors import (
    ConcurrencyConflictError,
    EmptyCartError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
)
from ..models.cart import Cart
from ..models.order import Order
from ..models.product import Product, ProductVariant
from ..models.shipping_zone import ShippingZone
from ..utils.clock import utcnow
from ..utils.dto import to_order_dto
from ..utils.pagination import normalize_paging, page_bounds
from ..utils.validators import ensure_money, ensure_text, optional_text
from . import order_state
from .logging import log_event
from .shipping_service import load_active_zone


class OrderService:
    """Order creation and lifecycle backed by DB.

    Orders are snapshots: line items, shipping price and total are frozen
    at creation and never re-derived from the live catalog or zone.
    """

    def __init__(self, session_factory=get_session, *, currency: str = "USD", commit_stock: bool = True):
        self._session_factory = session_factory
        self._currency = currency
        self._commit_stock = commit_stock

    @staticmethod
    def _dto(session, order: Order) -> Dict:
        return to_order_dto(order, session.get(ShippingZone, order.shipping_zone_id))

    @staticmethod
    def _load(session, order_id: str, *, for_update: bool = False) -> Order:
        q = session.query(Order).filter(Order.id == order_id)
        if for_update:
            q = q.with_for_update()
        order = q.first()
        if order is None:
            raise NotFoundError("order", order_id)
        return order

    @staticmethod
    def _find_by_request(session, user_id: str, request_id: str) -> Optional[Order]:
        return (
            session.query(Order)
            .filter(Order.user_id == user_id, Order.request_id == request_id)
            .first()
        )

    def _replay(self, session, order: Order, request_id: str) -> Dict:
        log_event("info", "order.replayed", order_id=order.id, request_id=request_id)
        return self._dto(session, order)

    @staticmethod
    def _snapshot(cart: Cart) -> Tuple[List[Dict], Decimal]:
        items = []
        items_price = Decimal("0")
        for line in cart.items:
            price = Decimal(str(line.price))
            items_price += price * line.quantity
            items.append(
                {
                    "productId": line.product_id,
                    "variantId": line.variant_id,
                    "name": line.display_name,
                    "image": line.display_image,
                    "price": float(price),
                    "quantity": line.quantity,
                    "color": line.color,
                    "size": line.size,
                }
            )
        return items, items_price

    @staticmethod
    def _adjust_stock(session, item: Dict, delta: int) -> bool:
        """Apply ``delta`` to the stock backing ``item``.

        Decrements are conditional on enough stock remaining; returns False
        when the row did not have it. Unbounded (unset) stock is left alone.
        """
        qty = item["quantity"]
        if item.get("variantId"):
            table, row_id = ProductVariant, item["variantId"]
        else:
            table, row_id = Product, item["productId"]
        stmt = (
            update(table)
            .where(table.id == row_id, table.stock.isnot(None))
            .values(stock=table.stock + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(table.stock >= qty)
        result = session.execute(stmt)
        if result.rowcount:
            return True
        current = session.query(table.stock).filter(table.id == row_id).scalar()
        return current is None

    def _commit_items(self, session, items: List[Dict]) -> None:
        for item in items:
            if not self._adjust_stock(session, item, -item["quantity"]):
                table = ProductVariant if item.get("variantId") else Product
                row_id = item.get("variantId") or item["productId"]
                available = session.query(table.stock).filter(table.id == row_id).scalar() or 0
                raise InsufficientStockError(item["productId"], requested=item["quantity"], available=int(available))

    def create_order(
        self,
        *,
        user_id: str,
        shipping_zone_id: str,
        payment_method: str,
        shipping_address: Optional[Dict[str, Any]] = None,
        tax_price: Any = 0,
        note: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Tuple[Dict, bool]:
        """Create an order from the user's cart.

        Returns ``(order, created)``. With a ``request_id`` already used by
        this user the existing order is returned and ``created`` is False.
        The cart itself is left in place; clearing it is up to the caller.
        """
        payment_method = ensure_text(payment_method, "paymentMethod")
        tax = ensure_money(tax_price, "taxPrice", default=Decimal("0"))
        request_id = optional_text(request_id)
        try:
            return self._place(user_id, shipping_zone_id, payment_method, shipping_address, tax, note, request_id)
        except ConcurrencyConflictError:
            if not request_id:
                raise
            # a concurrent request with the same key inserted first
            with self._session_factory() as session:
                existing = self._find_by_request(session, user_id, request_id)
                if existing is not None:
                    return self._replay(session, existing, request_id), False
            raise

    def _place(
        self,
        user_id: str,
        shipping_zone_id: str,
        payment_method: str,
        shipping_address: Optional[Dict[str, Any]],
        tax: Decimal,
        note: Optional[str],
        request_id: Optional[str],
    ) -> Tuple[Dict, bool]:
        with self._session_factory() as session:
            if request_id:
                existing = self._find_by_request(session, user_id, request_id)
                if existing is not None:
                    return self._replay(session, existing, request_id), False

            cart = session.query(Cart).filter(Cart.user_id == user_id).with_for_update().first()
            if cart is None or not cart.items:
                raise EmptyCartError()
            zone = load_active_zone(session, shipping_zone_id)

            items, items_price = self._snapshot(cart)
            shipping_price = Decimal(str(zone.delivery_charge or 0))
            if self._commit_stock:
                self._commit_items(session, items)

            order = Order(
                id=str(uuid4()),
                user_id=user_id,
                cart_id=cart.id,
                request_id=request_id,
                items=items,
                note=optional_text(note),
                shipping_zone_id=zone.id,
                shipping_address=dict(shipping_address or {}),
                payment_method=payment_method,
                currency=self._currency,
                items_price=items_price,
                tax_price=tax,
                shipping_price=shipping_price,
                total_price=items_price + tax + shipping_price,
                is_paid=False,
                is_delivered=False,
                status=order_state.OrderStatus.PENDING.value,
                stock_committed=self._commit_stock,
            )
            session.add(order)
            flush_or_conflict(session, "order")
            log_event(
                "info",
                "order.created",
                order_id=order.id,
                user_id=user_id,
                items=len(items),
                total=float(order.total_price),
                shipping_zone_id=zone.id,
            )
            return to_order_dto(order, zone), True

    def get_order(self, order_id: str, *, user_id: str, is_admin: bool = False) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id)
            if order.user_id != user_id and not is_admin:
                raise ForbiddenError("Not authorized to view this order")
            return self._dto(session, order)

    def list_user_orders(self, user_id: str) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.created_at.desc())
                .all()
            )
            return [self._dto(session, r) for r in rows]

    def list_orders(self, *, page=1, page_size=20, status: Optional[str] = None) -> Dict:
        p, ps = normalize_paging(page, page_size)
        with self._session_factory() as session:
            q = session.query(Order)
            if status:
                q = q.filter(Order.status == order_state.parse_status(status).value)
            total = q.count()
            offset, limit = page_bounds(p, ps)
            rows = q.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()
            return {"items": [self._dto(session, r) for r in rows], "page": p, "page_size": ps, "total": total}

    def transition(self, order_id: str, status: Any, *, actor: str = "admin") -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id, for_update=True)
            previous = order.status
            new_status = order_state.transition(order, status)
            if new_status is order_state.OrderStatus.CANCELLED and order.stock_committed:
                for item in order.items:
                    self._adjust_stock(session, item, item["quantity"])
                order.stock_committed = False
            flush_or_conflict(session, "order")
            log_event(
                "info",
                "order.status_changed",
                order_id=order.id,
                from_status=previous,
                to_status=order.status,
                actor=actor,
            )
            return self._dto(session, order)

    def cancel_by_owner(self, order_id: str, *, user_id: str) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id)
            if order.user_id != user_id:
                raise ForbiddenError("Not authorized to cancel this order")
        return self.transition(order_id, order_state.OrderStatus.CANCELLED, actor="customer")

    def mark_paid(
        self,
        order_id: str,
        payment_result: Optional[Dict[str, Any]] = None,
        *,
        user_id: Optional[str] = None,
        is_admin: bool = False,
    ) -> Dict:
        with self._session_factory() as session:
            order = self._load(session, order_id, for_update=True)
            if user_id is not None and order.user_id != user_id and not is_admin:
                raise ForbiddenError("Not authorized to pay for this order")
            order_state.mark_paid(order, payment_result, now=utcnow())
            flush_or_conflict(session, "order")
            log_event("info", "order.paid", order_id=order.id, payment_id=order.payment_result.get("id"))
            return self._dto(session, order)
