"""Observability for the wishlist cache service.

Structured logging with request correlation:
- JSON logs for production
- Console logs for local development
"""

from osswish.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    request_id_var,
)

__all__ = [
    "configure_logging",
    "LogContext",
    "request_id_var",
    "correlation_id_var",
]
