"""Pytest fixtures for storefront tests."""

from decimal import Decimal

import pytest

from storefront.app import create_app
from storefront.common.config import AppConfig
from storefront.common.db.session import init_db, make_session_factory
from storefront.common.models import Product, ProductVariant, ShippingZone
from storefront.common.services import CartService, OrderService


@pytest.fixture
def session_factory(tmp_path):
    factory = make_session_factory(f"sqlite:///{tmp_path / 'storefront.db'}")
    init_db(factory.engine)
    yield factory
    factory.engine.dispose()


@pytest.fixture
def catalog(session_factory):
    """Seed a flat product, a variant product and two shipping zones."""
    with session_factory() as session:
        session.add(
            Product(
                id="p-flat",
                sku="SKU-FLAT",
                name="Wooden Comb",
                price=Decimal("5.00"),
                stock=10,
                images=[{"url": "https://img.example/comb.jpg"}],
            )
        )
        session.add(
            Product(
                id="p-var",
                sku="SKU-VAR",
                name="Barber Chair",
                price=Decimal("99.00"),
                stock=100,
                variants=[
                    ProductVariant(id="v-s", size="S", price=Decimal("10.00"), stock=2, sort_order=0),
                    ProductVariant(id="v-m", size="M", price=Decimal("12.00"), stock=0, sort_order=1),
                ],
            )
        )
        session.add(Product(id="p-unbounded", sku="SKU-UNB", name="Gift Card", price=Decimal("25.00"), stock=None))
        session.add(ShippingZone(id="z-city", name="City", code="CITY", delivery_charge=Decimal("8.00"), is_active=True))
        session.add(ShippingZone(id="z-closed", name="Island", delivery_charge=Decimal("30.00"), is_active=False))
    return session_factory


@pytest.fixture
def cart_service(catalog):
    return CartService(catalog)


@pytest.fixture
def order_service(catalog):
    return OrderService(catalog, currency="USD", commit_stock=True)


@pytest.fixture
def app(catalog):
    config = AppConfig(
        database_url="sqlite://",
        secret_key="test",
        log_level="ERROR",
        currency="USD",
    )
    app = create_app(config, session_factory=catalog)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def headers():
    return {"X-User-Id": "u1"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Role": "admin"}
