"""Pydantic base for stored documents.

Documents are stored with camelCase keys (``createdAt``, ``parentComment``)
and ``_id`` identifiers; models expose snake_case attributes and accept
either spelling on input.
"""

from datetime import datetime
from typing import Annotated, Any, ClassVar, Self

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    ValidationError,
    WithJsonSchema,
)
from pydantic.alias_generators import to_camel

from src.core.errors import ValidationFailedError


def parse_object_id(value: Any, field: str = "_id") -> ObjectId:
    """Coerce a value to ObjectId.

    Raises:
        ValidationFailedError: ``Invalid <field>: <value>``
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError) as e:
        raise ValidationFailedError(f"Invalid {field}: {value}") from e


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value}")


PyObjectId = Annotated[
    ObjectId,
    PlainValidator(_validate_object_id),
    PlainSerializer(str, when_used="json"),
    WithJsonSchema({"type": "string"}),
]


class DocumentModel(BaseModel):
    """Schema of a stored document.

    Subclasses declare their fields and, in ``required_messages``, the
    message reported when a required field is absent or blank.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        use_enum_values=True,
        extra="ignore",
    )

    required_messages: ClassVar[dict[str, str]] = {}

    id: PyObjectId | None = Field(default=None, alias="_id")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def validate_document(cls, data: dict[str, Any]) -> Self:
        """Validate raw data, raising ValidationFailedError on any problem."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ValidationFailedError(
                collect_messages(e, cls.required_messages)
            ) from e

    def to_document(self) -> dict[str, Any]:
        """Dump to the stored (camelCase) shape, without an unset ``_id``."""
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document


def collect_messages(
    error: ValidationError, required_messages: dict[str, str]
) -> list[str]:
    """One message per invalid field, in field order of the errors."""
    messages: dict[str, str] = {}

    for detail in error.errors():
        loc = detail.get("loc") or ("",)
        field = str(loc[0])
        if field in messages:
            continue

        value = detail.get("input")
        blank = value is None or (isinstance(value, str) and not value.strip())
        if field in required_messages and (detail["type"] == "missing" or blank):
            messages[field] = required_messages[field]
        elif detail["type"] == "missing":
            messages[field] = f"Path `{field}` is required."
        elif detail["type"] == "enum":
            messages[field] = f"`{value}` is not a valid value for `{field}`."
        else:
            messages[field] = detail["msg"]

    return list(messages.values())
