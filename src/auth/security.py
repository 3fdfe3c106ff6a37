"""Security utilities for authentication.

Provides:
- Password hashing with Argon2id (OWASP recommended)
- Session token issuance and verification (JWT, HS256 by default)
- Parsing of ``<integer><unit>`` token lifetimes
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import ExpiredSignatureError, JWTError, jwt

from src.auth.permissions import UserRole
from src.core.errors import ExpiredTokenError, InternalFailureError, InvalidTokenError
from src.core.logging import get_logger


logger = get_logger(__name__)


# Argon2id configuration (OWASP recommended parameters)
# https://cheatsheetseries.owasp.org/cheatsheets/Password_Storage_Cheat_Sheet.html
_password_hasher = PasswordHasher(
    time_cost=2,  # 2 iterations
    memory_cost=19456,  # 19 MiB (19456 KiB)
    parallelism=1,  # Single thread
    hash_len=32,  # 32-byte output
    salt_len=16,  # 16-byte random salt
)


def hash_password(password: str) -> str:
    """Hash a password using Argon2id.

    The returned hash includes the algorithm parameters and salt,
    making it self-contained for verification.

    Args:
        password: Plain text password

    Returns:
        Argon2id hash string (includes salt and parameters)

    Example:
        >>> hashed = hash_password("my-secure-password")
        >>> hashed.startswith("$argon2id$")
        True
    """
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Verify a password against its hash.

    Also checks if the hash needs rehashing (algorithm params changed).

    Args:
        password: Plain text password to verify
        password_hash: Stored Argon2id hash

    Returns:
        Tuple of (is_valid, new_hash):
        - is_valid: True if password matches
        - new_hash: New hash if rehash needed, None otherwise
    """
    try:
        _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False, None

    if _password_hasher.check_needs_rehash(password_hash):
        return True, hash_password(password)

    return True, None


# ==============================================================================
# Token lifetime
# ==============================================================================

DEFAULT_TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60

_EXPIRE_PATTERN = re.compile(r"^(\d+)([smhdwMy])$")

# Months and years are approximate (30 and 365 days)
_UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
    "M": 30 * 24 * 60 * 60,
    "y": 365 * 24 * 60 * 60,
}


def parse_expires_in(value: str | None) -> int:
    """Convert a lifetime such as ``"30d"`` or ``"12h"`` to seconds.

    Unit is one of s, m, h, d, w, M (30 days) or y (365 days). A missing
    value yields the 30 day default; a malformed one logs a warning and
    yields the default as well.
    """
    if not value:
        return DEFAULT_TOKEN_TTL_SECONDS

    match = _EXPIRE_PATTERN.match(value.strip())
    if not match:
        logger.warning(
            "jwt_expire_invalid",
            value=value,
            default_seconds=DEFAULT_TOKEN_TTL_SECONDS,
        )
        return DEFAULT_TOKEN_TTL_SECONDS

    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


# ==============================================================================
# Session tokens
# ==============================================================================


@dataclass(frozen=True)
class TokenPayload:
    """Verified token claims."""

    user_id: str
    role: UserRole


class TokenService:
    """Issues and verifies signed session tokens.

    The signing key is injected at construction; nothing here reads
    process-wide settings.
    """

    def __init__(
        self,
        secret_key: str | None,
        algorithm: str = "HS256",
        expires_in: str | None = None,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.default_ttl_seconds = parse_expires_in(expires_in)

    def issue(
        self,
        user_id: Any,
        role: UserRole | str,
        ttl_seconds: int | None = None,
    ) -> str:
        """Sign a token for a user.

        Args:
            user_id: User identifier (stringified into ``sub``)
            role: User role claim
            ttl_seconds: Lifetime override; configured default when None

        Returns:
            Encoded JWT string

        Raises:
            InternalFailureError: If no signing key is configured
        """
        if not self.secret_key:
            logger.error("jwt_secret_missing")
            raise InternalFailureError("Failed to generate authentication token")

        now = datetime.now(UTC)
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        claims = {
            "sub": str(user_id),
            "role": UserRole(role).value,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }

        try:
            return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            logger.exception("jwt_sign_failed", error=str(e))
            raise InternalFailureError("Failed to generate authentication token") from e

    def verify(self, token: str) -> TokenPayload:
        """Decode and validate a token.

        Raises:
            ExpiredTokenError: Signature is valid but ``exp`` has passed
            InvalidTokenError: Any other decoding or claim problem
        """
        if not self.secret_key:
            raise InvalidTokenError

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise ExpiredTokenError from e
        except JWTError as e:
            raise InvalidTokenError from e

        user_id = claims.get("sub")
        if not user_id:
            raise InvalidTokenError

        try:
            role = UserRole(claims.get("role", UserRole.USER.value))
        except ValueError as e:
            raise InvalidTokenError from e

        return TokenPayload(user_id=user_id, role=role)
