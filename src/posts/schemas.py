"""Pydantic schemas for posts.

Request/Response models for:
- Post creation and updates
- Post detail (author and comments populated)
- Paginated listings
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from src.comments.schemas import CommentResponse
from src.core.schemas import AuthorDetails, AuthorSummary, CamelModel, DocumentResponse


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreatePostRequest(CamelModel):
    """Request to create a post."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_published: bool | None = None
    featured_image: str | None = None


class UpdatePostRequest(CamelModel):
    """Partial post update.

    Ownership and engagement fields (author, likes, comments) are not part
    of the schema and are dropped if sent.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_published: bool | None = None
    featured_image: str | None = None


# ==============================================================================
# Response Schemas
# ==============================================================================


class PostResponse(DocumentResponse):
    """Response for a single post."""

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    author: AuthorDetails | AuthorSummary | str
    likes: list[str] = Field(default_factory=list)
    comments: list[CommentResponse | str] = Field(default_factory=list)
    is_published: bool = True
    featured_image: str | None = None

    @computed_field(alias="likeCount")
    @property
    def like_count(self) -> int:
        return len(self.likes)

    @computed_field(alias="commentCount")
    @property
    def comment_count(self) -> int:
        return len(self.comments)

    @classmethod
    def from_post(
        cls,
        post: dict[str, Any],
        author: AuthorSummary | None = None,
        comments: list[CommentResponse] | None = None,
    ) -> "PostResponse":
        """Create response from a stored post.

        Args:
            post: Post document
            author: Populated author; bare id when None
            comments: Populated comments; bare ids when None
        """
        return cls(
            id=str(post["_id"]),
            title=post["title"],
            content=post["content"],
            tags=post.get("tags", []),
            author=author if author is not None else str(post["author"]),
            likes=[str(like) for like in post.get("likes", [])],
            comments=(
                comments
                if comments is not None
                else [str(c) for c in post.get("comments", [])]
            ),
            is_published=post.get("isPublished", True),
            featured_image=post.get("featuredImage"),
            created_at=post.get("createdAt"),
            updated_at=post.get("updatedAt"),
        )


class PageLink(BaseModel):
    """Neighbouring page reference."""

    page: int
    limit: int


class PostListResponse(BaseModel):
    """``{"success", "count", "pagination", "data"}``.

    ``data`` items are already projected to the selected fields.
    """

    success: bool = True
    count: int
    pagination: dict[str, PageLink] = Field(default_factory=dict)
    data: list[dict[str, Any]]


class LikesResponse(BaseModel):
    """``{"success": true, "data": [user ids]}``."""

    success: bool = True
    data: list[str]
