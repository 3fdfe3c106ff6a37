"""User document schema and repository.

Stored shape (``users`` collection)::

    {_id, username, email, password, role, avatar, createdAt, updatedAt}

``password`` always holds an Argon2id hash; it is hashed by the service
before reaching the repository and is excluded from reads unless asked for.
"""

import re
from collections.abc import Iterable
from typing import Any, ClassVar

from pydantic import field_validator
from pydantic_core import PydanticCustomError
from pymongo import ASCENDING, IndexModel

from src.auth.permissions import UserRole
from src.auth.validators import validate_email, validate_username
from src.core.database import DocumentModel, MongoRepository


DEFAULT_AVATAR = "default-avatar.png"


class UserDocument(DocumentModel):
    """User document."""

    required_messages: ClassVar[dict[str, str]] = {
        "username": "Please provide a username",
        "email": "Please provide an email",
        "password": "Please provide a password",
    }

    username: str
    email: str
    password: str
    role: UserRole = UserRole.USER
    avatar: str = DEFAULT_AVATAR

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        result = validate_username(v)
        if not result.valid:
            raise PydanticCustomError("username", result.message)
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        result = validate_email(v)
        if not result.valid:
            raise PydanticCustomError("email", result.message)
        return v.strip()


class UserRepository(MongoRepository):
    """Users collection."""

    collection_name = "users"
    document_model = UserDocument
    resource_name = "user"
    hidden_fields = ("password",)
    indexes: ClassVar[list[IndexModel]] = [
        IndexModel([("username", ASCENDING)], unique=True, name="username_1"),
        IndexModel([("email", ASCENDING)], unique=True, name="email_1"),
    ]

    async def find_by_email(
        self, email: str, include_hidden: bool = False
    ) -> dict[str, Any] | None:
        """Case-insensitive exact email lookup."""
        return await self.find_one(
            {"email": _exact_ci(email)}, include_hidden=include_hidden
        )

    async def find_by_username(self, username: str) -> dict[str, Any] | None:
        """Case-insensitive exact username lookup."""
        return await self.find_one({"username": _exact_ci(username)})

    async def find_taken_field(
        self,
        username: str | None = None,
        email: str | None = None,
        exclude_id: Any = None,
    ) -> str | None:
        """First of ``username``/``email`` already held by another account.

        Matching is case-insensitive, like the lookups above.
        """
        others = {"_id": {"$ne": self.object_id(exclude_id)}} if exclude_id else {}
        for field, value in (("username", username), ("email", email)):
            if value and await self.find_one({field: _exact_ci(value), **others}):
                return field
        return None

    async def find_by_ids(self, user_ids: Iterable[Any]) -> dict[str, dict[str, Any]]:
        """Users keyed by stringified id (for populating author references)."""
        ids = list({self.object_id(user_id) for user_id in user_ids})
        if not ids:
            return {}
        users = await self.find_many({"_id": {"$in": ids}})
        return {str(user["_id"]): user for user in users}


def _exact_ci(value: str) -> dict[str, str]:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}
