"""Helpers shared by the API and service tests."""

import asyncio
from typing import Any

from fastapi.testclient import TestClient

from src.auth.models import UserRepository
from src.auth.permissions import UserRole


API = "/api/v1"


def register(
    client: TestClient,
    username: str,
    email: str | None = None,
    password: str = "secret123",
) -> dict[str, Any]:
    """Register an account and return the response body.

    The session cookie set by the server is dropped so that each request
    authenticates only with the headers it passes.
    """
    response = client.post(
        f"{API}/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        },
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def promote_to_admin(users: UserRepository, user_id: str) -> None:
    """Give an account the admin role (role is not settable through the API)."""
    asyncio.run(users.update_by_id(user_id, {"role": UserRole.ADMIN.value}))


async def create_user(
    users: UserRepository, username: str, role: str = UserRole.USER.value
) -> dict[str, Any]:
    """Insert a user directly (password is a placeholder hash)."""
    return await users.create(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password": "$argon2id$placeholder",
            "role": role,
        }
    )
