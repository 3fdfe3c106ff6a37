"""Authentication service layer.

Business logic for:
- User registration and login
- Session token issuance
- Resolving a token to the acting user
- Password changes
"""

from typing import Any

from src.auth.models import UserRepository
from src.auth.permissions import UserRole
from src.auth.schemas import RegisterRequest
from src.auth.security import TokenService, hash_password, verify_password
from src.auth.validators import normalize_email, validate_email, validate_password
from src.core.errors import (
    InvalidCredentialsError,
    UnauthorizedError,
    ValidationFailedError,
)
from src.core.logging import get_logger


logger = get_logger(__name__)

User = dict[str, Any]


class AuthService:
    """Authentication service for registration, login and token checks."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        """Initialize with injected collaborators.

        Args:
            users: User repository
            tokens: Token signer/verifier
        """
        self.users = users
        self.tokens = tokens

    # ==========================================================================
    # Tokens
    # ==========================================================================

    def issue_token(self, user: User) -> str:
        """Sign a session token for a user document."""
        return self.tokens.issue(user["_id"], user.get("role", UserRole.USER))

    async def authenticate_token(self, token: str) -> User:
        """Resolve a session token to the stored user.

        Raises:
            InvalidTokenError / ExpiredTokenError: Token rejected
            UnauthorizedError: Token valid but the user no longer exists
        """
        payload = self.tokens.verify(token)
        user = await self.users.find_by_id(payload.user_id)
        if user is None:
            logger.info("token_user_missing", subject=payload.user_id)
            raise UnauthorizedError
        return user

    # ==========================================================================
    # Registration and login
    # ==========================================================================

    async def register(self, data: RegisterRequest) -> tuple[User, str]:
        """Create an account and sign a token for it.

        Raises:
            ValidationFailedError: Missing fields, short password, bad email,
                or an account already uses the email/username
            DuplicateKeyError: Unique index rejected the insert (race)
        """
        if not data.username or not data.email or not data.password:
            raise ValidationFailedError("Please provide all required fields")

        password = data.password.strip()
        for result in (validate_password(password), validate_email(data.email)):
            if not result.valid:
                raise ValidationFailedError(result.message)

        email = normalize_email(data.email)
        username = data.username.strip()

        if await self.users.find_by_email(email):
            raise ValidationFailedError("User with this email already exists")
        if await self.users.find_by_username(username):
            raise ValidationFailedError("User with this username already exists")

        user = await self.users.create(
            {
                "username": username,
                "email": email,
                "password": hash_password(password),
            }
        )
        logger.info("user_registered", registered_user_id=str(user["_id"]))
        return user, self.issue_token(user)

    async def login(self, email: str | None, password: str | None) -> tuple[User, str]:
        """Check credentials and sign a token.

        Unknown email and wrong password fail identically.

        Raises:
            ValidationFailedError: Email or password missing
            InvalidCredentialsError: Credentials rejected
        """
        if not email or not password:
            raise ValidationFailedError("Please provide an email and password")

        user = await self.users.find_by_email(
            normalize_email(email), include_hidden=True
        )
        if user is None:
            logger.info("login_failed")
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.get("password", ""))
        if not is_valid:
            logger.info("login_failed")
            raise InvalidCredentialsError

        if new_hash:
            await self.users.update_by_id(
                user["_id"], {"password": new_hash}, run_validators=False
            )
            logger.info("password_rehashed", login_user_id=str(user["_id"]))

        user.pop("password", None)
        logger.info("user_logged_in", login_user_id=str(user["_id"]))
        return user, self.issue_token(user)

    # ==========================================================================
    # Password
    # ==========================================================================

    async def update_password(
        self,
        user_id: Any,
        current_password: str | None,
        new_password: str | None,
    ) -> tuple[User, str]:
        """Change a password after checking the current one.

        Raises:
            InvalidCredentialsError: ``Password is incorrect``
            ValidationFailedError: New password too short or missing
        """
        user = await self.users.find_by_id(user_id, include_hidden=True)
        if user is None:
            raise UnauthorizedError

        is_valid, _ = verify_password(current_password or "", user.get("password", ""))
        if not is_valid:
            raise InvalidCredentialsError("Password is incorrect")

        password = (new_password or "").strip()
        result = validate_password(password)
        if not result.valid:
            raise ValidationFailedError(result.message)

        updated = await self.users.update_by_id(
            user_id, {"password": hash_password(password)}
        )
        if updated is None:
            raise UnauthorizedError

        logger.info("password_changed")
        return updated, self.issue_token(updated)
