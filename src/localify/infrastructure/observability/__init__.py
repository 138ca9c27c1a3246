"""Observability infrastructure for structured logging."""

from localify.infrastructure.observability.error_formatting import (
    describe_oserror,
    format_oserror_message,
)
from localify.infrastructure.observability.logging import (
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from localify.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "describe_oserror",
    "format_oserror_message",
    "get_correlation_id",
    "set_correlation_id",
]
