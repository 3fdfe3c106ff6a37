"""Post module.

Note: Router and service are not exported here to avoid circular imports.
Import directly from src.posts.router / src.posts.service when needed.
"""

from .models import PostDocument, PostRepository


__all__ = [
    "PostDocument",
    "PostRepository",
]
