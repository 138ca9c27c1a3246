"""Middleware for observability: request/response logging."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from localify.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# Hey future me, this logs EVERY request. For /tracks/{id}/stream and POST /index the "response"
# line is written when headers go out, not when the body finishes - the duration is
# time-to-first-byte for streams. Audio players fire a LOT of range requests, so those are
# logged at DEBUG to keep INFO readable.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    def __init__(self, app: ASGIApp, log_request_body: bool = False) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application
            log_request_body: Whether to log request body (can be verbose)
        """
        super().__init__(app)
        self.log_request_body = log_request_body

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response from application
        """
        set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        is_range_request = "range" in request.headers
        log = logger.debug if is_range_request else logger.info

        extra = {
            "method": method,
            "path": path,
            "query_params": str(request.query_params),
            "client_ip": client_ip,
        }
        if self.log_request_body and method in ("POST", "PUT", "PATCH"):
            extra["body"] = (await request.body()).decode("utf-8", errors="replace")
        log(f"→ {method} {path}", extra=extra)

        start_time = time.time()
        try:
            response = await call_next(request)

            duration = time.time() - start_time
            status_emoji = "✓" if response.status_code < 400 else "✗"
            log(
                f"{status_emoji} {method} {path} → {response.status_code} "
                f"({duration * 1000:.0f}ms)",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": int(duration * 1000),
                },
            )

            response.headers[CORRELATION_HEADER] = get_correlation_id()
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_seconds": duration,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            raise
