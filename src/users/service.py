"""User management service.

Admin CRUD over accounts plus self-service profile updates. Passwords are
hashed here, before anything reaches the repository.
"""

from typing import Any

from src.auth.models import UserRepository
from src.auth.schemas import CreateUserRequest, UpdateProfileRequest, UpdateUserRequest
from src.auth.security import hash_password
from src.auth.validators import normalize_email, validate_password
from src.core.errors import DuplicateKeyError, NotFoundError, ValidationFailedError
from src.core.logging import get_logger


logger = get_logger(__name__)

User = dict[str, Any]


class UserService:
    """Account administration."""

    def __init__(self, users: UserRepository):
        self.users = users

    @staticmethod
    def _not_found(user_id: Any) -> NotFoundError:
        return NotFoundError(f"User not found with id of {user_id}")

    async def list_users(self) -> list[User]:
        """All users, oldest first, without passwords."""
        return await self.users.find_many(sort=[("createdAt", 1), ("_id", 1)])

    async def get_user(self, user_id: Any) -> User:
        """Fetch a user or raise NotFoundError."""
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise self._not_found(user_id)
        return user

    async def _prepare(self, fields: dict[str, Any], user_id: Any = None) -> None:
        """Normalize a create/patch payload in place.

        Passwords are trimmed, checked and hashed. Username and email must
        not be held by another account, ignoring case.

        Raises:
            ValidationFailedError: Password too short
            DuplicateKeyError: Username or email taken
        """
        if "password" in fields:
            password = fields["password"].strip()
            result = validate_password(password)
            if not result.valid:
                raise ValidationFailedError(result.message)
            fields["password"] = hash_password(password)
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        if "username" in fields:
            fields["username"] = fields["username"].strip()

        taken = await self.users.find_taken_field(
            username=fields.get("username"),
            email=fields.get("email"),
            exclude_id=user_id,
        )
        if taken:
            raise DuplicateKeyError(taken)

    async def create_user(self, data: CreateUserRequest) -> User:
        """Create an account on behalf of an admin.

        Raises:
            ValidationFailedError: Schema or password checks failed
            DuplicateKeyError: Username or email taken
        """
        fields = data.model_dump(exclude_none=True)
        await self._prepare(fields)

        user = await self.users.create(fields)
        logger.info("user_created", created_user_id=str(user["_id"]))
        return user

    async def update_user(self, user_id: Any, data: UpdateUserRequest) -> User:
        """Apply an admin patch (validators run, password re-hashed)."""
        patch = data.model_dump(exclude_none=True)
        await self._prepare(patch, user_id)

        user = await self.users.update_by_id(user_id, patch)
        if user is None:
            raise self._not_found(user_id)
        logger.info("user_updated", updated_user_id=str(user_id), fields=sorted(patch))
        return user

    async def delete_user(self, user_id: Any) -> None:
        """Delete an account or raise NotFoundError."""
        if not await self.users.delete_by_id(user_id):
            raise self._not_found(user_id)
        logger.info("user_deleted", deleted_user_id=str(user_id))

    async def update_profile(self, user_id: Any, data: UpdateProfileRequest) -> User:
        """Self-service update of username, email and avatar."""
        patch = data.model_dump(exclude_none=True)
        await self._prepare(patch, user_id)

        user = await self.users.update_by_id(user_id, patch)
        if user is None:
            raise self._not_found(user_id)
        return user
