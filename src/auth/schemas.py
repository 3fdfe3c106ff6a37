"""Pydantic schemas for authentication and user profiles.

Request fields are optional at the schema level; presence and format
checks happen in the services so that clients get the same messages no
matter which field is missing.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.auth.permissions import UserRole
from src.core.schemas import CamelModel, DocumentResponse


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    """User login request."""

    email: str | None = None
    password: str | None = None


class UpdateProfileRequest(CamelModel):
    """Self-service profile update."""

    username: str | None = None
    email: str | None = None
    avatar: str | None = None


class UpdatePasswordRequest(CamelModel):
    """Password change (``currentPassword``, ``newPassword``)."""

    current_password: str | None = None
    new_password: str | None = None


class CreateUserRequest(BaseModel):
    """Admin user creation."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: UserRole | None = None
    avatar: str | None = None


class UpdateUserRequest(BaseModel):
    """Admin user update; only supplied fields change."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: UserRole | None = None
    avatar: str | None = None


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(DocumentResponse):
    """User as returned by the API (never includes the password)."""

    username: str
    email: str
    role: UserRole = UserRole.USER
    avatar: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "UserResponse":
        return cls(
            id=str(document["_id"]),
            username=document["username"],
            email=document["email"],
            role=document.get("role", UserRole.USER),
            avatar=document.get("avatar"),
            created_at=document.get("createdAt"),
            updated_at=document.get("updatedAt"),
        )


class SessionUser(BaseModel):
    """User summary returned alongside a freshly issued token."""

    id: str
    username: str
    email: str
    role: UserRole
    avatar: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(document["_id"]),
            username=document["username"],
            email=document["email"],
            role=document.get("role", UserRole.USER),
            avatar=document.get("avatar"),
        )


class TokenResponse(BaseModel):
    """``{"success": true, "token": ..., "user": {...}}``."""

    success: bool = True
    token: str
    user: SessionUser | None = None


class UserListResponse(BaseModel):
    """``{"success": true, "count": n, "data": [...]}``."""

    success: bool = True
    count: int
    data: list[UserResponse] = Field(default_factory=list)
