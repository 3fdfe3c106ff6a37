"""Tests for auth security functions."""

import pytest
from bson import ObjectId
from jose import jwt

from src.auth.permissions import UserRole
from src.auth.security import (
    DEFAULT_TOKEN_TTL_SECONDS,
    TokenService,
    hash_password,
    parse_expires_in,
    verify_password,
)
from src.core.errors import ExpiredTokenError, InternalFailureError, InvalidTokenError


SECRET = "unit-test-secret"


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_creates_hash(self) -> None:
        """Hash should be different from plain password."""
        password = "secret123"
        hashed = hash_password(password)
        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_unique_hashes(self) -> None:
        """Same password should produce different hashes (due to salt)."""
        assert hash_password("secret123") != hash_password("secret123")

    def test_verify_password_correct(self) -> None:
        """Correct password should verify successfully."""
        hashed = hash_password("secret123")
        is_valid, new_hash = verify_password("secret123", hashed)
        assert is_valid is True
        assert new_hash is None  # No rehash needed for fresh hash

    def test_verify_password_incorrect(self) -> None:
        """Incorrect password should fail verification."""
        hashed = hash_password("secret123")
        is_valid, new_hash = verify_password("secret124", hashed)
        assert is_valid is False
        assert new_hash is None

    def test_verify_password_garbage_hash(self) -> None:
        """A stored value that is not an Argon2 hash never verifies."""
        is_valid, _ = verify_password("secret123", "not-a-hash")
        assert is_valid is False

    def test_hash_is_argon2id(self) -> None:
        """Hash should use Argon2id format."""
        assert hash_password("secret123").startswith("$argon2id$")


class TestParseExpiresIn:
    """Tests for token lifetime parsing."""

    @pytest.mark.parametrize(
        "value,seconds",
        [
            ("45s", 45),
            ("15m", 15 * 60),
            ("12h", 12 * 3600),
            ("30d", 30 * 86400),
            ("2w", 14 * 86400),
            ("1M", 30 * 86400),
            ("1y", 365 * 86400),
        ],
    )
    def test_units(self, value: str, seconds: int) -> None:
        """Every supported unit converts to seconds."""
        assert parse_expires_in(value) == seconds

    @pytest.mark.parametrize("value", [None, "", "soon", "10", "5x", "-3d"])
    def test_missing_or_malformed_falls_back(self, value: str | None) -> None:
        """Missing and malformed values yield the default lifetime."""
        assert parse_expires_in(value) == DEFAULT_TOKEN_TTL_SECONDS


class TestTokenService:
    """Tests for session token issuance and verification."""

    def test_issue_and_verify(self) -> None:
        """A fresh token resolves to the subject and role it was issued for."""
        tokens = TokenService(SECRET, expires_in="1h")
        user_id = ObjectId()

        payload = tokens.verify(tokens.issue(user_id, UserRole.ADMIN))

        assert payload.user_id == str(user_id)
        assert payload.role == UserRole.ADMIN

    def test_claims(self) -> None:
        """Tokens carry sub, role, iat and exp; exp honours the lifetime."""
        tokens = TokenService(SECRET, expires_in="2h")
        claims = jwt.decode(tokens.issue("abc", "user"), SECRET, algorithms=["HS256"])

        assert claims["sub"] == "abc"
        assert claims["role"] == "user"
        assert claims["exp"] - claims["iat"] == 2 * 3600

    def test_expired_token(self) -> None:
        """Expired tokens are reported distinctly from invalid ones."""
        tokens = TokenService(SECRET)
        token = tokens.issue("abc", UserRole.USER, ttl_seconds=-10)

        with pytest.raises(ExpiredTokenError):
            tokens.verify(token)

    def test_garbage_token(self) -> None:
        """Malformed tokens are invalid."""
        with pytest.raises(InvalidTokenError):
            TokenService(SECRET).verify("invalid.token.here")

    def test_wrong_secret(self) -> None:
        """A token signed with another key is invalid."""
        token = TokenService("other-secret").issue("abc", UserRole.USER)

        with pytest.raises(InvalidTokenError) as exc_info:
            TokenService(SECRET).verify(token)
        assert exc_info.value.message == "Invalid token. Please log in again!"

    def test_missing_subject(self) -> None:
        """A correctly signed token without ``sub`` is invalid."""
        token = jwt.encode({"role": "user"}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            TokenService(SECRET).verify(token)

    def test_issue_without_secret(self) -> None:
        """Signing without a key is an internal failure."""
        with pytest.raises(InternalFailureError, match="authentication token"):
            TokenService(None).issue("abc", UserRole.USER)

    def test_tokens_for_different_users_differ(self) -> None:
        """Tokens for different users are unique."""
        tokens = TokenService(SECRET)
        assert tokens.issue(ObjectId(), "user") != tokens.issue(ObjectId(), "user")
