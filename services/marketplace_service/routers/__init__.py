"""Marketplace service routers package."""

from services.marketplace_service.routers.auth import router as auth_router
from services.marketplace_service.routers.cart import router as cart_router
from services.marketplace_service.routers.categories import router as categories_router
from services.marketplace_service.routers.orders import router as orders_router
from services.marketplace_service.routers.products import router as products_router
from services.marketplace_service.routers.realtime import router as realtime_router
from services.marketplace_service.routers.users import router as users_router
from services.marketplace_service.routers.vendors import router as vendors_router

__all__ = [
    "auth_router",
    "cart_router",
    "categories_router",
    "orders_router",
    "products_router",
    "realtime_router",
    "users_router",
    "vendors_router",
]
