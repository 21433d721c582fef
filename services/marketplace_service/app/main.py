"""FastAPI application for the FreshMart marketplace service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.marketplace_service.routers import (
    auth_router,
    cart_router,
    categories_router,
    orders_router,
    products_router,
    realtime_router,
    users_router,
    vendors_router,
)
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the marketplace FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="FreshMart Marketplace Service",
        version="0.1.0",
        description="Multi-vendor grocery marketplace: catalog, cart, checkout, orders.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "marketplace"}

    prefix = settings.API_PREFIX
    app.include_router(auth_router, prefix=prefix)
    app.include_router(users_router, prefix=prefix)
    app.include_router(categories_router, prefix=prefix)
    app.include_router(products_router, prefix=prefix)
    app.include_router(cart_router, prefix=prefix)
    app.include_router(orders_router, prefix=prefix)
    app.include_router(vendors_router, prefix=prefix)

    # Real-time notifications
    app.include_router(realtime_router)

    return app


app = create_app()
