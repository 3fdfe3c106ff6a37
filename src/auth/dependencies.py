"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Auth service lookup from app state
- Session token extraction (Bearer header, then cookie)
- Current user resolution
- Admin-only access
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from src.auth.permissions import UserRole, is_admin
from src.auth.service import AuthService
from src.config.settings import Settings, get_settings
from src.core.context import bind_actor
from src.core.errors import AppError, UnauthorizedError, to_http_exception


class CurrentUserInfo(BaseModel):
    """Authenticated actor for the duration of a request."""

    id: str
    username: str
    email: str
    role: UserRole
    avatar: str | None = None


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


AppSettings = Annotated[Settings, Depends(get_app_settings)]


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not available",
        )
    return service


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Args:
        request: FastAPI request

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_session_token(request: Request) -> str | None:
    """Session token from the Authorization header, else the session cookie."""
    token = get_token_from_header(request)
    if token:
        return token

    cookie = request.cookies.get(get_app_settings(request).auth_cookie_name)
    # Logout overwrites the cookie with a placeholder
    if cookie and cookie != "none":
        return cookie
    return None


async def get_current_user(
    token: Annotated[str | None, Depends(get_session_token)],
    auth_service: AuthServiceDep,
) -> CurrentUserInfo:
    """Get the current authenticated user.

    Verifies the token and loads the user from the store, so deleted
    accounts lose access immediately.

    Raises:
        HTTPException(401): Token missing, invalid, expired, or user gone
    """
    if not token:
        raise to_http_exception(UnauthorizedError())

    try:
        user = await auth_service.authenticate_token(token)
    except AppError as e:
        raise to_http_exception(e) from e

    bind_actor(user["_id"], user.get("role"))

    return CurrentUserInfo(
        id=str(user["_id"]),
        username=user["username"],
        email=user["email"],
        role=user.get("role", UserRole.USER),
        avatar=user.get("avatar"),
    )


async def require_admin(
    user: Annotated[CurrentUserInfo, Depends(get_current_user)],
) -> CurrentUserInfo:
    """Require ADMIN role.

    Raises:
        HTTPException(401): Authenticated user is not an admin
    """
    if not is_admin(user.role):
        raise to_http_exception(
            UnauthorizedError(
                f"User role {user.role.value} is not authorized to access this route"
            )
        )
    return user


# Type aliases for cleaner route signatures
CurrentUser = Annotated[CurrentUserInfo, Depends(get_current_user)]
AdminUser = Annotated[CurrentUserInfo, Depends(require_admin)]
SessionToken = Annotated[str | None, Depends(get_session_token)]
