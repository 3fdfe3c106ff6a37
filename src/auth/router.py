"""Authentication API endpoints.

Provides routes for:
- User registration and login
- Current user lookup
- Logout (session cookie cleared)
"""

from typing import Any

from fastapi import APIRouter, Response, status

from src.auth.dependencies import AppSettings, AuthServiceDep, CurrentUser
from src.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    SessionUser,
    TokenResponse,
    UserResponse,
)
from src.config.settings import Settings
from src.core.errors import AppError, NotFoundError, to_http_exception
from src.core.schemas import DataResponse


router = APIRouter(prefix="/auth", tags=["auth"])

LOGOUT_COOKIE_SECONDS = 10


# ==============================================================================
# Session cookie
# ==============================================================================


def set_session_cookie(
    response: Response, token: str, settings: Settings, max_age: int | None = None
) -> None:
    """Attach the session cookie.

    Cross-site (``secure`` + ``SameSite=None``) in production, ``Lax``
    elsewhere. Logout overwrites it with the same attributes, otherwise
    browsers keep the original.
    """
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.cookie_max_age if max_age is None else max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="none" if settings.is_production else "lax",
        domain=settings.auth_cookie_domain if settings.is_production else None,
    )


def token_response(
    response: Response, user: dict[str, Any], token: str, settings: Settings
) -> TokenResponse:
    """Set the cookie and build ``{success, token, user}``."""
    set_session_cookie(response, token, settings)
    return TokenResponse(token=token, user=SessionUser.from_document(user))


# ==============================================================================
# Public Endpoints (No Auth Required)
# ==============================================================================


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={400: {"description": "Validation error or duplicate account"}},
)
async def register(
    data: RegisterRequest,
    response: Response,
    auth_service: AuthServiceDep,
    settings: AppSettings,
) -> TokenResponse:
    """Register a new account and start a session."""
    try:
        user, token = await auth_service.register(data)
    except AppError as e:
        raise to_http_exception(e) from e
    return token_response(response, user, token, settings)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="User login",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    data: LoginRequest,
    response: Response,
    auth_service: AuthServiceDep,
    settings: AppSettings,
) -> TokenResponse:
    """Authenticate by email and password and start a session."""
    try:
        user, token = await auth_service.login(data.email, data.password)
    except AppError as e:
        raise to_http_exception(e) from e
    return token_response(response, user, token, settings)


@router.get("/logout", summary="User logout")
async def logout(response: Response, settings: AppSettings) -> dict[str, Any]:
    """Overwrite the session cookie with a short-lived placeholder."""
    set_session_cookie(response, "none", settings, max_age=LOGOUT_COOKIE_SECONDS)
    return {"success": True, "data": {}}


# ==============================================================================
# Authenticated Endpoints
# ==============================================================================


@router.get(
    "/me",
    response_model=DataResponse[UserResponse],
    summary="Get current user",
)
async def get_me(
    current_user: CurrentUser, auth_service: AuthServiceDep
) -> DataResponse[UserResponse]:
    """Get the authenticated user's profile."""
    user = await auth_service.users.find_by_id(current_user.id)
    if user is None:
        raise to_http_exception(NotFoundError("User not found"))
    return DataResponse(data=UserResponse.from_document(user))
