"""Storefront core: cart pricing, stock reconciliation and order lifecycle."""

__version__ = "0.1.0"
