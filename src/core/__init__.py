"""Cross-cutting infrastructure: logging, request context, middleware."""

from src.core.context import begin_request, bind_actor, end_request, log_fields
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RateLimitMiddleware, RequestContextMiddleware


__all__ = [
    "RateLimitMiddleware",
    "RequestContextMiddleware",
    "begin_request",
    "bind_actor",
    "configure_structlog",
    "end_request",
    "get_logger",
    "log_fields",
]
