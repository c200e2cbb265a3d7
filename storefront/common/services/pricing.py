"""Pricing resolver: authoritative unit price and stock ceiling for a selection.

A product is priced either flat (one price/stock pair) or by variant (one
price/stock pair per size). ``pricing_of`` turns a ``Product`` row into one
of the two explicitly, so a variant-bearing product can never fall back to
its base price.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple, Union

from ..errors import InvalidSelectionError, NotFoundError, ValidationError
from ..models.product import Product


@dataclass(frozen=True)
class VariantOption:
    id: str
    size: str
    price: Decimal
    stock: int


@dataclass(frozen=True)
class FlatPricing:
    price: Optional[Decimal]
    # None: never set, unbounded
    stock: Optional[int]


@dataclass(frozen=True)
class VariantPricing:
    variants: Tuple[VariantOption, ...]


Pricing = Union[FlatPricing, VariantPricing]


@dataclass(frozen=True)
class Resolution:
    product_id: str
    unit_price: Decimal
    stock_ceiling: Optional[int]
    variant: Optional[VariantOption] = None

    def allows(self, quantity: int) -> bool:
        return self.stock_ceiling is None or quantity <= self.stock_ceiling


def pricing_of(product: Product) -> Pricing:
    if product.variants:
        return VariantPricing(
            variants=tuple(
                VariantOption(
                    id=v.id,
                    size=v.size,
                    price=Decimal(str(v.price)),
                    stock=int(v.stock or 0),
                )
                for v in product.variants
            )
        )
    price = Decimal(str(product.price)) if product.price is not None else None
    stock = int(product.stock) if product.stock is not None else None
    return FlatPricing(price=price, stock=stock)


def resolve_product(
    product: Product,
    *,
    variant_id: Optional[str] = None,
    size: Optional[str] = None,
) -> Resolution:
    """Resolve price and stock ceiling for an already loaded product."""
    pricing = pricing_of(product)
    if isinstance(pricing, VariantPricing):
        chosen = None
        if variant_id:
            chosen = next((v for v in pricing.variants if v.id == variant_id), None)
        elif size:
            chosen = next((v for v in pricing.variants if v.size == size), None)
        if chosen is None:
            raise InvalidSelectionError(product.id, variant_id=variant_id, size=size)
        return Resolution(
            product_id=product.id,
            unit_price=chosen.price,
            stock_ceiling=chosen.stock,
            variant=chosen,
        )

    if pricing.price is None:
        raise ValidationError(f"Product {product.id} has no price configured", field="price")
    return Resolution(product_id=product.id, unit_price=pricing.price, stock_ceiling=pricing.stock)


def load_product(session, product_id: str) -> Product:
    product = (
        session.query(Product)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise NotFoundError("product", product_id)
    return product


def resolve(
    session,
    product_id: str,
    *,
    variant_id: Optional[str] = None,
    size: Optional[str] = None,
) -> Tuple[Product, Resolution]:
    """Load ``product_id`` from the catalog and resolve the selection.

    Always reads current catalog state; nothing is cached between calls.
    """
    product = load_product(session, product_id)
    return product, resolve_product(product, variant_id=variant_id, size=size)
