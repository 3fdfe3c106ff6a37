"""Application error taxonomy.

Every failure a service can report is an ``AppError`` with a stable ``code``.
Routers convert them to HTTP errors with ``to_http_exception``; the app-level
handlers render the ``{"success": false, "error": ...}`` envelope.
"""

from collections.abc import Iterable

from fastapi import HTTPException, status


class ConfigurationError(Exception):
    """Required configuration is missing; the process must not start."""


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationFailedError(AppError):
    """One or more fields failed validation."""

    def __init__(self, messages: str | Iterable[str]):
        self.messages = [messages] if isinstance(messages, str) else list(messages)
        super().__init__(". ".join(self.messages), "validation_failed")


class DuplicateKeyError(AppError):
    """A unique field already holds the submitted value."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(
            message
            or f"{field} is already in use. Please use a different {field}.",
            "duplicate_key",
        )


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str):
        super().__init__(message, "not_found")


class UnauthorizedError(AppError):
    """Request is not authenticated."""

    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message, "unauthorized")


class InvalidCredentialsError(AppError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, "invalid_credentials")


class ForbiddenError(AppError):
    """Authenticated actor may not act on the resource."""

    def __init__(self, message: str):
        super().__init__(message, "forbidden")


class InvalidTokenError(AppError):
    """Token is malformed or its signature does not verify."""

    def __init__(self, message: str = "Invalid token. Please log in again!"):
        super().__init__(message, "invalid_token")


class ExpiredTokenError(AppError):
    """Token signature is fine but it has expired."""

    def __init__(self, message: str = "Your token has expired! Please log in again."):
        super().__init__(message, "expired_token")


class AlreadyLikedError(AppError):
    """Like requested on something the actor already likes."""

    def __init__(self, message: str):
        super().__init__(message, "already_liked")


class NotLikedError(AppError):
    """Unlike requested on something the actor does not like."""

    def __init__(self, message: str):
        super().__init__(message, "not_liked")


class RateLimitExceededError(AppError):
    """Too many requests from one client."""

    def __init__(
        self,
        message: str = (
            "Too many requests from this IP, please try again after 15 minutes"
        ),
    ):
        super().__init__(message, "rate_limit_exceeded")


class InternalFailureError(AppError):
    """Unexpected failure; details are logged, never returned."""

    def __init__(self, message: str = "Something went wrong!"):
        super().__init__(message, "internal_failure")


# Ownership failures answer 401 rather than 403 across the API.
STATUS_MAP: dict[str, int] = {
    "validation_failed": status.HTTP_400_BAD_REQUEST,
    "duplicate_key": status.HTTP_400_BAD_REQUEST,
    "already_liked": status.HTTP_400_BAD_REQUEST,
    "not_liked": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "forbidden": status.HTTP_401_UNAUTHORIZED,
    "invalid_token": status.HTTP_401_UNAUTHORIZED,
    "expired_token": status.HTTP_401_UNAUTHORIZED,
    "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    "internal_failure": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(error: AppError) -> int:
    """HTTP status code for an application error."""
    return STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def to_http_exception(error: AppError) -> HTTPException:
    """Convert an AppError to an HTTPException."""
    return HTTPException(status_code=status_for(error), detail=error.message)
