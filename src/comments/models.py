"""Comment document schema and repository.

Stored shape (``comments`` collection)::

    {_id, content, author, post, parentComment, isEdited, likes,
     createdAt, updatedAt}

A comment with ``parentComment = null`` is top-level. Replies are never
stored on the parent; they are the comments whose ``parentComment``
points at it.
"""

from typing import ClassVar

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError
from pymongo import ASCENDING, TEXT, IndexModel

from src.core.database import DocumentModel, MongoRepository, PyObjectId


CONTENT_MAX_LENGTH = 1000


class CommentDocument(DocumentModel):
    """Comment document."""

    required_messages: ClassVar[dict[str, str]] = {
        "content": "Please provide comment content",
    }

    content: str
    author: PyObjectId
    post: PyObjectId
    parent_comment: PyObjectId | None = None
    is_edited: bool = False
    likes: list[PyObjectId] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise PydanticCustomError("content", "Please provide comment content")
        if len(v) > CONTENT_MAX_LENGTH:
            raise PydanticCustomError(
                "content",
                f"Comment cannot be more than {CONTENT_MAX_LENGTH} characters",
            )
        return v


class CommentRepository(MongoRepository):
    """Comments collection."""

    collection_name = "comments"
    document_model = CommentDocument
    resource_name = "comment"
    indexes: ClassVar[list[IndexModel]] = [
        IndexModel([("post", ASCENDING)], name="post_1"),
        IndexModel([("parentComment", ASCENDING)], name="parentComment_1"),
        IndexModel([("content", TEXT)], name="content_text"),
    ]
