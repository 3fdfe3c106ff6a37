"""Shared response schemas.

Every successful response is wrapped as ``{"success": true, ...}``. Response
models serialize with camelCase keys and ``_id`` identifiers, matching the
stored document shape.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for response models (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DocumentResponse(CamelModel):
    """Fields common to every stored document."""

    id: str = Field(alias="_id")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthorSummary(CamelModel):
    """Public author details embedded in posts and comments."""

    id: str = Field(alias="_id")
    username: str
    avatar: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "AuthorSummary":
        return cls(
            id=str(document["_id"]),
            username=document.get("username", ""),
            avatar=document.get("avatar"),
        )


class AuthorDetails(AuthorSummary):
    """Author details returned to the author on creation."""

    email: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "AuthorDetails":
        return cls(
            id=str(document["_id"]),
            username=document.get("username", ""),
            avatar=document.get("avatar"),
            email=document.get("email"),
        )


class DataResponse(BaseModel, Generic[T]):
    """``{"success": true, "data": ...}``."""

    success: bool = True
    data: T


class MessageResponse(BaseModel):
    """``{"success": true, "message": ...}``."""

    success: bool = True
    message: str

