"""Per-request tracing for the marketplace API.

Every HTTP request gets a request id (taken from ``X-Request-ID`` when the
client sends one) that is bound to the logging context and echoed back on
the response. Access lines are written for everything except health probes.
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health"})


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the log context and writes one access line."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            # Stack trace stays in the log; the client gets a bare 500.
            logger.exception(
                "Unhandled error while serving request",
                extra={"extra_fields": {"error": str(exc), "duration_ms": _elapsed_ms(started)}},
            )
            response = JSONResponse(
                status_code=500, content={"detail": "Internal server error"}
            )
        else:
            if not quiet:
                fields = {
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                }
                if request.url.query:
                    fields["query"] = request.url.query
                level = logging_level_for(response.status_code)
                logger.log(
                    level,
                    "%s %s -> %s",
                    request.method,
                    request.url.path,
                    response.status_code,
                    extra={"extra_fields": fields},
                )
        finally:
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def logging_level_for(status_code: int) -> int:
    """Client and server errors are logged as warnings, the rest as info."""
    return logging.WARNING if status_code >= 400 else logging.INFO


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
