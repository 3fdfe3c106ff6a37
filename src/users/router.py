"""User API endpoints.

- ``/users/me*``: any authenticated user, acting on their own account
- everything else: admins only
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.auth.dependencies import AdminUser, AppSettings, AuthServiceDep, CurrentUser
from src.auth.router import token_response
from src.auth.schemas import (
    CreateUserRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from src.core.errors import AppError, to_http_exception
from src.core.schemas import DataResponse
from src.users.service import UserService


router = APIRouter(prefix="/users", tags=["users"])


async def get_user_service(request: Request) -> UserService:
    """Get user service from app state."""
    service = getattr(request.app.state, "user_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User service not available",
        )
    return service


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


# ==============================================================================
# Current user
# ==============================================================================


@router.get("/me", response_model=DataResponse[UserResponse])
async def get_profile(
    current_user: CurrentUser, user_service: UserServiceDep
) -> DataResponse[UserResponse]:
    """Get own profile."""
    try:
        user = await user_service.get_user(current_user.id)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=UserResponse.from_document(user))


@router.put("/me/update", response_model=DataResponse[UserResponse])
async def update_profile(
    data: UpdateProfileRequest,
    current_user: CurrentUser,
    user_service: UserServiceDep,
) -> DataResponse[UserResponse]:
    """Update own username, email or avatar."""
    try:
        user = await user_service.update_profile(current_user.id, data)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=UserResponse.from_document(user))


@router.put("/me/updatepassword", response_model=TokenResponse)
async def update_password(
    data: UpdatePasswordRequest,
    response: Response,
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
    settings: AppSettings,
) -> TokenResponse:
    """Change own password; a new session token is issued."""
    try:
        user, token = await auth_service.update_password(
            current_user.id, data.current_password, data.new_password
        )
    except AppError as e:
        raise to_http_exception(e) from e
    return token_response(response, user, token, settings)


# ==============================================================================
# Admin
# ==============================================================================


@router.get("", response_model=UserListResponse)
async def list_users(
    _admin: AdminUser, user_service: UserServiceDep
) -> UserListResponse:
    """List all users."""
    users = await user_service.list_users()
    return UserListResponse(
        count=len(users), data=[UserResponse.from_document(u) for u in users]
    )


@router.post(
    "",
    response_model=DataResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: CreateUserRequest, _admin: AdminUser, user_service: UserServiceDep
) -> DataResponse[UserResponse]:
    """Create a user."""
    try:
        user = await user_service.create_user(data)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=UserResponse.from_document(user))


@router.get("/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(
    user_id: str, _admin: AdminUser, user_service: UserServiceDep
) -> DataResponse[UserResponse]:
    """Get a user by id."""
    try:
        user = await user_service.get_user(user_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=UserResponse.from_document(user))


@router.put("/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(
    user_id: str,
    data: UpdateUserRequest,
    _admin: AdminUser,
    user_service: UserServiceDep,
) -> DataResponse[UserResponse]:
    """Update a user."""
    try:
        user = await user_service.update_user(user_id, data)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=UserResponse.from_document(user))


@router.delete("/{user_id}")
async def delete_user(
    user_id: str, _admin: AdminUser, user_service: UserServiceDep
) -> dict[str, Any]:
    """Delete a user."""
    try:
        await user_service.delete_user(user_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return {"success": True, "data": {}}
