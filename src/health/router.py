"""Health check endpoints."""

import platform
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse
from pymongo.errors import PyMongoError

from src.auth.dependencies import AppSettings
from src.core.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])
api_router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready", response_model=None)
async def readiness(
    request: Request, settings: AppSettings
) -> dict[str, str | bool] | ORJSONResponse:
    """Readiness probe - checks the database answers."""
    database = getattr(request.app.state, "database", None)
    try:
        if database is None:
            raise ConnectionError("database not initialized")
        await database.command("ping")
    except (PyMongoError, ConnectionError) as e:
        logger.warning("readiness_check_failed", error=str(e))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "environment": settings.environment},
        )

    return {
        "status": "ready",
        "environment": settings.environment,
        "debug": settings.debug,
    }


@api_router.get("/api/health")
async def health(settings: AppSettings) -> dict[str, Any]:
    """General health check endpoint."""
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": settings.environment,
        "pythonVersion": platform.python_version(),
    }
