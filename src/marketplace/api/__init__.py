"""Marketplace API package."""

from marketplace.api.routes import commission_router, order_router, variant_router

__all__ = ["commission_router", "order_router", "variant_router"]
