"""HTTP middleware: request ids and access logging, per-IP rate limiting."""

import time
from collections.abc import Awaitable, Callable, Collection

import structlog
from fastapi import Request, Response, status
from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.context import begin_request, end_request
from src.core.errors import RateLimitExceededError
from src.core.rate_limit import RateLimiter


logger = structlog.get_logger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


def get_client_ip(
    request: Request, trusted_proxies: Collection[str] = ()
) -> str | None:
    """Originating client address.

    Forwarding headers are honoured only when the direct peer is a trusted
    proxy. The client is then the rightmost ``X-Forwarded-For`` hop that is
    not itself a trusted proxy, i.e. the address our proxy appended; the
    entries left of it are client supplied.
    """
    peer = request.client.host if request.client else None
    if peer is None or peer not in trusted_proxies:
        return peer

    forwarded_for = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return request.headers.get("x-real-ip") or peer


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of a request and log the exchange.

    The id comes from the ``X-Request-ID`` header when the caller sends one
    and is echoed on the response. Paths under ``exclude_paths`` (probes)
    are served without access log lines.
    """

    REQUEST_ID_HEADER = "X-Request-ID"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
        trusted_proxies: Collection[str] = (),
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.trusted_proxies = frozenset(trusted_proxies)
        self.exclude_paths = tuple(exclude_paths or ("/health", "/api/health"))

    async def dispatch(self, request: Request, call_next: Handler) -> Response:
        started = time.perf_counter()
        request_id = begin_request(request.headers.get(self.REQUEST_ID_HEADER))
        request.state.request_id = request_id
        path = request.url.path
        access_log = self.log_requests and not path.startswith(self.exclude_paths)

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            if access_log:
                logger.info(
                    "request_started",
                    method=request.method,
                    path=path,
                    client_ip=get_client_ip(request, self.trusted_proxies),
                )
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    "request_failed",
                    method=request.method,
                    path=path,
                    error_type=type(e).__name__,
                    duration_ms=elapsed_ms(),
                )
                raise

            if access_log:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "request_completed",
                    method=request.method,
                    path=path,
                    status_code=response.status_code,
                    duration_ms=elapsed_ms(),
                )
            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            end_request()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the request budget on API routes.

    The limiter is read from ``app.state.rate_limiter``; without one (no
    Redis) every request passes.
    """

    def __init__(
        self,
        app: ASGIApp,
        path_prefix: str = "/api",
        trusted_proxies: Collection[str] = (),
    ) -> None:
        super().__init__(app)
        self.path_prefix = path_prefix
        self.trusted_proxies = frozenset(trusted_proxies)

    async def dispatch(
        self,
        request: Request,
        call_next: Handler,
    ) -> Response:
        limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
        if limiter is None or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_proxies) or "unknown"
        try:
            state = await limiter.hit(client_ip)
        except RateLimitExceededError as e:
            return ORJSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"success": False, "error": e.message},
                headers={"Retry-After": str(limiter.window_seconds)},
            )

        response = await call_next(request)
        if state is not None:
            response.headers["RateLimit-Limit"] = str(state.limit)
            response.headers["RateLimit-Remaining"] = str(state.remaining)
            response.headers["RateLimit-Reset"] = str(state.reset_seconds)
        return response


__all__ = [
    "RateLimitMiddleware",
    "RequestContextMiddleware",
    "get_client_ip",
]
