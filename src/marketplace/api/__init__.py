"""Marketplace API package."""

from marketplace.api.catalogue_routes import product_router, region_router
from marketplace.api.errors import register_error_handlers
from marketplace.api.identity_routes import application_router, auth_router
from marketplace.api.routes import cart_router, order_router

__all__ = [
    "auth_router",
    "application_router",
    "product_router",
    "region_router",
    "cart_router",
    "order_router",
    "register_error_handlers",
]
