"""Comment system module.

Provides threaded comments on posts:
- Top-level comments and one level of replies
- Editing and removal by the author or an admin
- Likes

Note: Router and service are not exported here to avoid circular imports.
Import directly from src.comments.router / src.comments.service when needed.
"""

from .models import CommentDocument, CommentRepository


__all__ = [
    "CommentDocument",
    "CommentRepository",
]
