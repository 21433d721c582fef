"""Request throttling for the FreshMart API (slowapi).

Limits are counted in ``RATE_LIMIT_STORAGE_URI`` (in-process memory by
default, ``redis://`` to share counters between workers). Set
``RATE_LIMIT_ENABLED=false`` to turn every limit into a no-op.

Decorated endpoints must accept a ``request: Request`` parameter.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings

AUTH_LIMIT = "5/minute"
CHECKOUT_LIMIT = "10/minute"


def client_address(request: Request) -> str:
    """Originating client address; first X-Forwarded-For hop behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def limit_key(request: Request) -> str:
    """Signed-in callers share one bucket per account; others one per address."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{client_address(request)}"


@lru_cache
def get_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=limit_key,
        default_limits=[settings.RATE_LIMIT_DEFAULT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 with the breached limit and a Retry-After hint."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests: limit is {exc.detail}.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def auth_limit(func: Callable) -> Callable:
    """Throttle credential endpoints (register, login) against guessing."""
    return limiter.limit(AUTH_LIMIT)(func)


def checkout_limit(func: Callable) -> Callable:
    """Throttle order placement per customer."""
    return limiter.limit(CHECKOUT_LIMIT)(func)
