"""Role and ownership checks.

Two roles:
- ADMIN: may modify any post or comment and manage users
- USER: may modify only what they authored
"""

from enum import Enum
from typing import Any, Protocol

from src.core.errors import ForbiddenError


class UserRole(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


class Actor(Protocol):
    """Anything with an identity and a role (the authenticated user)."""

    id: Any
    role: UserRole | str


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN


def can_modify(actor: Actor, owner_id: Any) -> bool:
    """Check if actor may update or delete a resource owned by ``owner_id``.

    True when the actor is the owner or an admin.

    Examples:
        >>> can_modify(alice, alice.id)
        True
        >>> can_modify(bob, alice.id)
        False
    """
    if is_admin(actor.role):
        return True
    return owner_id is not None and str(actor.id) == str(owner_id)


def ensure_can_modify(
    actor: Actor, owner_id: Any, action: str = "update", resource: str = "post"
) -> None:
    """Raise ForbiddenError unless ``can_modify`` holds.

    Args:
        actor: Authenticated user
        owner_id: Author of the resource
        action: Verb used in the error message ("update", "delete")
        resource: Resource name used in the error message
    """
    if not can_modify(actor, owner_id):
        raise ForbiddenError(
            f"User {actor.id} is not authorized to {action} this {resource}"
        )
