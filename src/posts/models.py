"""Post document schema and repository.

Stored shape (``posts`` collection)::

    {_id, title, content, tags, author, likes, comments, isPublished,
     featuredImage, createdAt, updatedAt}

``likes`` holds user ids (no duplicates), ``comments`` holds top-level
comment ids in creation order.
"""

from typing import ClassVar

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError
from pymongo import ASCENDING, DESCENDING, IndexModel

from src.core.database import DocumentModel, MongoRepository, PyObjectId
from src.core.query import Caster, to_bool, to_datetime, to_object_id, to_str


TITLE_MAX_LENGTH = 100


class PostDocument(DocumentModel):
    """Post document."""

    required_messages: ClassVar[dict[str, str]] = {
        "title": "Please provide a title",
        "content": "Please provide content",
    }

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    author: PyObjectId
    likes: list[PyObjectId] = Field(default_factory=list)
    comments: list[PyObjectId] = Field(default_factory=list)
    is_published: bool = True
    featured_image: str | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise PydanticCustomError("title", "Please provide a title")
        if len(v) > TITLE_MAX_LENGTH:
            raise PydanticCustomError(
                "title", f"Title cannot be more than {TITLE_MAX_LENGTH} characters"
            )
        return v

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("content", "Please provide content")
        return v

    @field_validator("tags")
    @classmethod
    def trim_tags(cls, v: list[str]) -> list[str]:
        return [tag.strip() for tag in v]


class PostRepository(MongoRepository):
    """Posts collection."""

    collection_name = "posts"
    document_model = PostDocument
    resource_name = "post"
    indexes: ClassVar[list[IndexModel]] = [
        IndexModel([("createdAt", DESCENDING)], name="createdAt_-1"),
        IndexModel([("author", ASCENDING)], name="author_1"),
    ]

    # Listing query language: filterable fields and how to cast their values
    filter_fields: ClassVar[dict[str, Caster]] = {
        "_id": to_object_id,
        "title": to_str,
        "content": to_str,
        "tags": to_str,
        "author": to_object_id,
        "likes": to_object_id,
        "isPublished": to_bool,
        "featuredImage": to_str,
        "createdAt": to_datetime,
        "updatedAt": to_datetime,
    }
    sort_fields: ClassVar[frozenset[str]] = frozenset(
        {"_id", "title", "author", "isPublished", "createdAt", "updatedAt"}
    )
