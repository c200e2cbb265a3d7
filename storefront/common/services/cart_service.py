from decimal import Decimal
from typing import Dict, Optional
from uuid import uuid4

from ..db.session import flush_or_conflict, get_session
from ..errors import (
    InsufficientStockError,
    InvalidSelectionError,
    NotFoundError,
)
from ..models.cart import Cart
from ..models.cart_item import CartItem
from ..utils.clock import utcnow
from ..utils.dto import to_cart_dto
from ..utils.validators import ensure_quantity, optional_text
from .logging import log_event
from .pricing import resolve


class CartService:
    """Cart operations backed by DB.

    A cart exists only while it has at least one line: the row is created on
    the first add and deleted when the last line goes. Every add/update
    re-resolves prices against the catalog, and every mutation bumps the
    cart's version so concurrent writers on the same cart fail instead of
    overwriting each other.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    @staticmethod
    def _load_cart(session, user_id: str, *, for_update: bool = False) -> Optional[Cart]:
        q = session.query(Cart).filter(Cart.user_id == user_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    def _require_cart(self, session, user_id: str) -> Cart:
        cart = self._load_cart(session, user_id, for_update=True)
        if cart is None:
            raise NotFoundError("cart")
        return cart

    @staticmethod
    def _held_by_other_lines(cart: Optional[Cart], product_id: str, variant_id: Optional[str], exclude=None) -> int:
        """Quantity of the same product/variant already held by other lines (e.g. other colors)."""
        if cart is None:
            return 0
        return sum(
            it.quantity
            for it in cart.items
            if it is not exclude and it.product_id == product_id and it.variant_id == variant_id
        )

    @staticmethod
    def _recompute_totals(cart: Cart) -> None:
        items_price = sum(
            (Decimal(str(it.price)) * it.quantity for it in cart.items),
            Decimal("0"),
        )
        cart.items_price = items_price
        cart.total_amount = items_price + Decimal(str(cart.shipping_price or 0)) + Decimal(str(cart.tax_price or 0))
        cart.updated_at = utcnow()

    def _reprice_lines(self, session, cart: Cart, *, skip: Optional[CartItem] = None) -> None:
        """Re-resolve every line's price against the catalog.

        Lines whose product or variant no longer resolves are dropped from the
        cart rather than kept at a stale price.
        """
        for line in list(cart.items):
            if line is skip:
                continue
            try:
                _, res = resolve(session, line.product_id, variant_id=line.variant_id, size=line.size)
            except (NotFoundError, InvalidSelectionError) as exc:
                cart.items.remove(line)
                log_event("warning", "cart.line_dropped", cart_id=cart.id, line_id=line.id, reason=exc.kind)
                continue
            line.price = res.unit_price
            if res.variant is not None:
                line.variant_id = res.variant.id

    def get(self, user_id: str) -> Dict:
        with self._session_factory() as session:
            cart = self._load_cart(session, user_id)
            if cart is None:
                raise NotFoundError("cart")
            return to_cart_dto(cart)

    def add_line(
        self,
        user_id: str,
        product_id: str,
        quantity=1,
        *,
        color: Optional[str] = None,
        variant_id: Optional[str] = None,
        size: Optional[str] = None,
    ) -> Dict:
        qnty = ensure_quantity(quantity)
        color = optional_text(color)
        size = optional_text(size)
        with self._session_factory() as session:
            product, res = resolve(session, product_id, variant_id=optional_text(variant_id), size=size)
            if res.variant is not None:
                size = res.variant.size

            cart = self._load_cart(session, user_id, for_update=True)
            existing = None
            if cart is not None:
                existing = next((it for it in cart.items if it.matches(product.id, color, size)), None)

            merged = qnty + (existing.quantity if existing else 0)
            held = self._held_by_other_lines(cart, product.id, res.variant.id if res.variant else None, existing)
            if not res.allows(merged + held):
                raise InsufficientStockError(product.id, requested=merged, available=max(res.stock_ceiling - held, 0))

            if cart is None:
                cart = Cart(id=str(uuid4()), user_id=user_id)
                session.add(cart)

            if existing is not None:
                existing.quantity = merged
                line = existing
            else:
                line = CartItem(
                    id=str(uuid4()),
                    position=max((it.position for it in cart.items), default=-1) + 1,
                    product_id=product.id,
                    quantity=qnty,
                    color=color,
                    size=size,
                    display_name=product.name,
                    display_image=product.primary_image,
                )
                cart.items.append(line)
            line.price = res.unit_price
            line.variant_id = res.variant.id if res.variant else None

            self._reprice_lines(session, cart, skip=line)
            self._recompute_totals(cart)
            flush_or_conflict(session, "cart")
            log_event(
                "info",
                "cart.line_added",
                user_id=user_id,
                cart_id=cart.id,
                product_id=product.id,
                quantity=line.quantity,
                merged=existing is not None,
            )
            return to_cart_dto(cart)

    def update_line(self, user_id: str, line_id: str, quantity) -> Dict:
        qnty = ensure_quantity(quantity)
        with self._session_factory() as session:
            cart = self._require_cart(session, user_id)
            line = next((it for it in cart.items if it.id == line_id), None)
            if line is None:
                raise NotFoundError("item", line_id)

            _, res = resolve(session, line.product_id, variant_id=line.variant_id, size=line.size)
            held = self._held_by_other_lines(cart, line.product_id, res.variant.id if res.variant else None, line)
            if not res.allows(qnty + held):
                raise InsufficientStockError(line.product_id, requested=qnty, available=max(res.stock_ceiling - held, 0))

            line.quantity = qnty
            line.price = res.unit_price
            self._reprice_lines(session, cart, skip=line)
            self._recompute_totals(cart)
            flush_or_conflict(session, "cart")
            log_event("info", "cart.line_updated", user_id=user_id, cart_id=cart.id, line_id=line_id, quantity=qnty)
            return to_cart_dto(cart)

    def remove_line(self, user_id: str, line_id: str) -> Optional[Dict]:
        """Remove a line; returns None when that emptied (and deleted) the cart."""
        with self._session_factory() as session:
            cart = self._require_cart(session, user_id)
            line = next((it for it in cart.items if it.id == line_id), None)
            if line is None:
                raise NotFoundError("item", line_id)
            cart.items.remove(line)

            if not cart.items:
                session.delete(cart)
                flush_or_conflict(session, "cart")
                log_event("info", "cart.deleted", user_id=user_id, cart_id=cart.id, reason="last_line_removed")
                return None

            self._recompute_totals(cart)
            flush_or_conflict(session, "cart")
            log_event("info", "cart.line_removed", user_id=user_id, cart_id=cart.id, line_id=line_id)
            return to_cart_dto(cart)

    def clear(self, user_id: str) -> None:
        with self._session_factory() as session:
            cart = self._require_cart(session, user_id)
            session.delete(cart)
            flush_or_conflict(session, "cart")
            log_event("info", "cart.deleted", user_id=user_id, cart_id=cart.id, reason="cleared")
        return None
