"""Storefront core Flask application: cart, checkout and order lifecycle."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from .common.config import AppConfig, load_env
from .common.db.session import init_db, make_session_factory
from .common.errors import StorefrontError
from .common.services import CartService, CatalogService, OrderService, ShippingService
from .common.services.logging import log_event, set_level
from .routes import admin, api


def _handle_storefront_error(exc: StorefrontError):
    log_event(
        "warning" if exc.status_code == 409 else "info",
        "request.rejected",
        kind=exc.kind,
        status=exc.status_code,
        message=exc.message,
    )
    return jsonify(exc.to_dict()), exc.status_code


def create_app(config: Optional[AppConfig] = None, session_factory=None) -> Flask:
    config = config or load_env()
    set_level(config.log_level)
    session_factory = session_factory or make_session_factory(config.database_url)
    init_db(session_factory.engine)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STOREFRONT_CONFIG"] = config

    components = {
        "catalog": CatalogService(session_factory),
        "shipping": ShippingService(session_factory),
        "cart_service": CartService(session_factory),
        "order_service": OrderService(
            session_factory,
            currency=config.currency,
            commit_stock=config.commits_stock,
        ),
    }
    app.extensions["storefront_components"] = components

    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)
    app.register_error_handler(StorefrontError, _handle_storefront_error)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
