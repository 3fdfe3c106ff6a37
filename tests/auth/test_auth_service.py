"""Tests for AuthService over an in-memory database."""

import pytest

from src.auth.models import UserRepository
from src.auth.schemas import RegisterRequest
from src.auth.security import TokenService
from src.auth.service import AuthService
from src.core.errors import (
    InvalidCredentialsError,
    UnauthorizedError,
    ValidationFailedError,
)


def registration(**overrides) -> RegisterRequest:
    data = {"username": "alice", "email": "alice@x.com", "password": "secret123"}
    data.update(overrides)
    return RegisterRequest(**data)


class TestRegister:
    """Tests for account registration."""

    @pytest.mark.asyncio
    async def test_register_stores_hashed_password(
        self, auth_service: AuthService, users: UserRepository
    ) -> None:
        user, token = await auth_service.register(registration())

        assert token
        assert "password" not in user
        stored = await users.find_by_id(user["_id"], include_hidden=True)
        assert stored["password"].startswith("$argon2id$")
        assert stored["role"] == "user"
        assert stored["avatar"] == "default-avatar.png"

    @pytest.mark.asyncio
    async def test_email_is_normalized(
        self, auth_service: AuthService
    ) -> None:
        user, _ = await auth_service.register(registration(email="  Alice@X.COM "))
        assert user["email"] == "alice@x.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    async def test_missing_field(self, auth_service: AuthService, missing: str) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await auth_service.register(registration(**{missing: None}))
        assert exc_info.value.message == "Please provide all required fields"

    @pytest.mark.asyncio
    async def test_short_password(self, auth_service: AuthService) -> None:
        with pytest.raises(ValidationFailedError, match="at least 6 characters"):
            await auth_service.register(registration(password="12345"))

    @pytest.mark.asyncio
    async def test_password_length_counts_trimmed_value(
        self, auth_service: AuthService, users: UserRepository
    ) -> None:
        """Surrounding whitespace does not count towards the minimum length."""
        with pytest.raises(ValidationFailedError, match="at least 6 characters"):
            await auth_service.register(registration(password="     x"))

        assert await users.find_by_email("alice@x.com") is None

    @pytest.mark.asyncio
    async def test_password_is_stored_trimmed(self, auth_service: AuthService) -> None:
        await auth_service.register(registration(password="  secret123  "))

        user, _ = await auth_service.login("alice@x.com", "secret123")
        assert user["username"] == "alice"

    @pytest.mark.asyncio
    async def test_invalid_email(self, auth_service: AuthService) -> None:
        with pytest.raises(ValidationFailedError, match="valid email"):
            await auth_service.register(registration(email="alice@x"))

    @pytest.mark.asyncio
    async def test_duplicate_email_case_insensitive(
        self, auth_service: AuthService
    ) -> None:
        await auth_service.register(registration())

        with pytest.raises(ValidationFailedError) as exc_info:
            await auth_service.register(
                registration(username="alice2", email="ALICE@x.com")
            )
        assert exc_info.value.message == "User with this email already exists"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, auth_service: AuthService) -> None:
        await auth_service.register(registration())

        with pytest.raises(ValidationFailedError) as exc_info:
            await auth_service.register(registration(email="other@x.com"))
        assert exc_info.value.message == "User with this username already exists"


class TestLogin:
    """Tests for login."""

    @pytest.mark.asyncio
    async def test_login_returns_user_without_password(
        self, auth_service: AuthService
    ) -> None:
        registered, _ = await auth_service.register(registration())

        user, token = await auth_service.login("Alice@X.com", "secret123")

        assert user["_id"] == registered["_id"]
        assert "password" not in user
        assert token

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_are_indistinguishable(
        self, auth_service: AuthService
    ) -> None:
        await auth_service.register(registration())

        with pytest.raises(InvalidCredentialsError) as unknown:
            await auth_service.login("nobody@x.com", "secret123")
        with pytest.raises(InvalidCredentialsError) as wrong:
            await auth_service.login("alice@x.com", "wrong-pass")

        assert unknown.value.message == wrong.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, auth_service: AuthService) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await auth_service.login("alice@x.com", None)
        assert exc_info.value.message == "Please provide an email and password"


class TestTokens:
    """Tests for token resolution."""

    @pytest.mark.asyncio
    async def test_token_resolves_to_user(self, auth_service: AuthService) -> None:
        user, token = await auth_service.register(registration())

        resolved = await auth_service.authenticate_token(token)

        assert resolved["_id"] == user["_id"]

    @pytest.mark.asyncio
    async def test_token_of_deleted_user_is_rejected(
        self, auth_service: AuthService, users: UserRepository
    ) -> None:
        user, token = await auth_service.register(registration())
        await users.delete_by_id(user["_id"])

        with pytest.raises(UnauthorizedError):
            await auth_service.authenticate_token(token)


class TestUpdatePassword:
    """Tests for password changes."""

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service: AuthService) -> None:
        user, _ = await auth_service.register(registration())

        _, token = await auth_service.update_password(
            user["_id"], "secret123", "newsecret"
        )

        assert token
        await auth_service.login("alice@x.com", "newsecret")
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("alice@x.com", "secret123")

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, auth_service: AuthService) -> None:
        user, _ = await auth_service.register(registration())

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.update_password(user["_id"], "nope-nope", "newsecret")
        assert exc_info.value.message == "Password is incorrect"

    @pytest.mark.asyncio
    async def test_new_password_too_short(self, auth_service: AuthService) -> None:
        user, _ = await auth_service.register(registration())

        with pytest.raises(ValidationFailedError):
            await auth_service.update_password(user["_id"], "secret123", "123")

    @pytest.mark.asyncio
    async def test_new_password_padded_to_length_is_rejected(
        self, auth_service: AuthService
    ) -> None:
        user, _ = await auth_service.register(registration())

        with pytest.raises(ValidationFailedError, match="at least 6 characters"):
            await auth_service.update_password(user["_id"], "secret123", "  ab    ")

        await auth_service.login("alice@x.com", "secret123")


@pytest.mark.asyncio
async def test_tokens_carry_stored_role(
    users: UserRepository, tokens: TokenService
) -> None:
    """The role claim reflects the stored role."""
    service = AuthService(users=users, tokens=tokens)
    user, _ = await service.register(registration())
    await users.update_by_id(user["_id"], {"role": "admin"})

    _, token = await service.login("alice@x.com", "secret123")

    assert tokens.verify(token).role.value == "admin"
