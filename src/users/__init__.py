"""User management module.

Note: Router is not exported here to avoid circular imports.
Import directly from src.users.router when needed.
"""

from .service import UserService


__all__ = ["UserService"]
