"""Health check endpoints."""

from .router import api_router, router


__all__ = ["api_router", "router"]
