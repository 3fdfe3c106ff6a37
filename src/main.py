"""Agora API - Main Application."""

import traceback
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as redis
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.auth.models import UserRepository
from src.auth.router import router as auth_router
from src.auth.security import TokenService
from src.auth.service import AuthService
from src.comments.models import CommentRepository
from src.comments.router import post_comments_router
from src.comments.router import router as comments_router
from src.comments.service import CommentService
from src.config import Settings, get_settings
from src.core.database import MongoConnection, init_mongo
from src.core.errors import ConfigurationError, InternalFailureError
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RateLimitMiddleware, RequestContextMiddleware
from src.core.rate_limit import RateLimiter
from src.core.redis import init_redis, shutdown_redis
from src.health import api_router as api_health_router
from src.health import router as health_router
from src.posts.models import PostRepository
from src.posts.router import router as posts_router
from src.posts.service import PostService
from src.users.router import router as users_router
from src.users.service import UserService


logger = get_logger(__name__)


def check_required_settings(settings: Settings) -> None:
    """Fail startup when a required setting is missing."""
    missing = [
        name
        for name, value in (
            ("MONGO_URI", settings.mongo_uri),
            ("JWT_SECRET", settings.jwt_secret),
        )
        if not value
    ]
    if missing:
        logger.critical("missing_required_settings", missing=missing)
        msg = f"Missing required environment variables: {', '.join(missing)}"
        raise ConfigurationError(msg)


def build_services(
    app: FastAPI,
    settings: Settings,
    database: AsyncIOMotorDatabase,
    redis_client: redis.Redis | None,
) -> None:
    """Wire repositories and services onto ``app.state``."""
    users = UserRepository(database)
    posts = PostRepository(database)
    comments = CommentRepository(database)
    tokens = TokenService(
        secret_key=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=settings.jwt_expire,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.auth_service = AuthService(users=users, tokens=tokens)
    app.state.user_service = UserService(users=users)
    app.state.post_service = PostService(posts=posts, comments=comments, users=users)
    app.state.comment_service = CommentService(
        comments=comments, posts=posts, users=users
    )
    app.state.rate_limiter = RateLimiter(
        client=redis_client,
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def create_app(
    settings: Settings | None = None,
    database: AsyncIOMotorDatabase | None = None,
    redis_client: redis.Redis | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        database: Pre-connected database; skips connecting and index creation
        redis_client: Pre-connected Redis client for the rate limiter
    """
    settings = settings or get_settings()
    configure_structlog(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info(
            "starting_application",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
        )
        check_required_settings(settings)

        # An injected database belongs to the caller
        mongo: MongoConnection | None = None
        db = database
        if db is None:
            mongo = MongoConnection(settings)
            db = await init_mongo(mongo)
        app.state.mongo = mongo

        # Redis is optional, without it requests are not rate limited
        owns_redis = False
        client = redis_client
        if client is None and settings.redis_enabled:
            try:
                client = await init_redis(settings)
                owns_redis = True
            except (RedisError, OSError) as e:
                logger.warning(
                    "redis_init_skipped",
                    error=str(e),
                    message="Running without Redis - rate limiting disabled",
                )

        build_services(app, settings, db, client)
        logger.info("services_initialized", rate_limited=client is not None)

        yield

        logger.info("shutting_down_application")
        if owns_redis:
            await shutdown_redis(client)
        if mongo is not None:
            mongo.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Community forum API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )
    app.state.settings = settings

    app.add_middleware(
        RateLimitMiddleware,
        path_prefix=settings.api_prefix,
        trusted_proxies=settings.trusted_proxies,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Request context middleware (added last - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
        trusted_proxies=settings.trusted_proxies,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Render HTTP errors in the ``{success, error}`` envelope."""
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Can't find {request.url.path} on this server!"
        else:
            message = str(exc.detail)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=message,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Render request validation failures as a single 400 message."""
        messages = [err.get("msg", "Invalid value") for err in exc.errors()]
        logger.warning(
            "validation_error",
            errors=messages,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": ". ".join(messages)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details and the stack trace are never returned in production.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        fallback = InternalFailureError().message
        content: dict[str, Any] = {"success": False, "error": fallback}
        if not settings.is_production:
            content["error"] = str(exc) or fallback
            content["stack"] = "".join(traceback.format_exception(exc))
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(api_health_router)
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(users_router, prefix=settings.api_prefix)
    app.include_router(posts_router, prefix=settings.api_prefix)
    app.include_router(post_comments_router, prefix=settings.api_prefix)
    app.include_router(comments_router, prefix=settings.api_prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": f"{settings.app_name} API", "version": settings.app_version}

    return app


app = create_app()
