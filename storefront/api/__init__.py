"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from storefront.api.categories import admin_router as admin_categories_router
from storefront.api.categories import router as categories_router
from storefront.api.health import router as health_router
from storefront.api.products import admin_router as admin_products_router
from storefront.api.products import router as products_router
from storefront.api.quotes import admin_router as admin_quotes_router
from storefront.api.quotes import router as quote_requests_router

__all__ = [
    "admin_categories_router",
    "admin_products_router",
    "admin_quotes_router",
    "categories_router",
    "health_router",
    "products_router",
    "quote_requests_router",
]
