"""Pydantic schemas for comments.

Request/Response models for:
- Creating, replying to and editing comments
- Comment threads (top-level comments with their direct replies)
"""

from typing import Any

from pydantic import BaseModel, Field

from src.core.schemas import AuthorSummary, CamelModel, DocumentResponse


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(CamelModel):
    """Request to create a comment or a reply."""

    content: str | None = None


class UpdateCommentRequest(CamelModel):
    """Request to edit a comment."""

    content: str | None = None


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(DocumentResponse):
    """Response for a single comment."""

    content: str
    author: AuthorSummary | str
    post: str
    parent_comment: str | None = None
    is_edited: bool = False
    likes: list[str] = Field(default_factory=list)

    @classmethod
    def from_comment(
        cls,
        comment: dict[str, Any],
        authors: dict[str, dict[str, Any]] | None = None,
    ) -> "CommentResponse":
        """Create response from a stored comment.

        Args:
            comment: Comment document
            authors: Author documents by id; the author stays a bare id
                when absent (deleted account)
        """
        author_id = str(comment["author"])
        author = (authors or {}).get(author_id)
        parent = comment.get("parentComment")

        return cls(
            id=str(comment["_id"]),
            content=comment["content"],
            author=AuthorSummary.from_document(author) if author else author_id,
            post=str(comment["post"]),
            parent_comment=str(parent) if parent else None,
            is_edited=comment.get("isEdited", False),
            likes=[str(like) for like in comment.get("likes", [])],
            created_at=comment.get("createdAt"),
            updated_at=comment.get("updatedAt"),
        )


class CommentWithRepliesResponse(CommentResponse):
    """Top-level comment with its direct replies."""

    replies: list[CommentResponse] = Field(default_factory=list)


class CommentListResponse(BaseModel):
    """``{"success": true, "count": n, "data": [...]}``."""

    success: bool = True
    count: int
    data: list[CommentWithRepliesResponse]
