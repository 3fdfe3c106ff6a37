"""Listing query language.

Query strings such as::

    ?select=title,tags&sort=-likes,title&page=2&limit=5&isPublished=true
    &createdAt[gte]=2024-01-01&tags[in]=python,fastapi

are turned into a MongoDB filter, a sort order, a field
selection and an offset window.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel

from src.core.errors import ValidationFailedError


RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})
OPERATORS = frozenset({"gt", "gte", "lt", "lte", "in"})

DEFAULT_SORT = "-createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

_FILTER_KEY = re.compile(r"^(\w+)(?:\[(\w+)\])?$")


# ==============================================================================
# Casting
# ==============================================================================


def to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(value)


def to_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def to_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value.strip())
    except InvalidId as e:
        raise ValueError(value) from e


def to_str(value: str) -> str:
    return value


Caster = Callable[[str], Any]


# ==============================================================================
# Parsing
# ==============================================================================


def build_filter(
    params: Mapping[str, str], field_types: Mapping[str, Caster]
) -> dict[str, Any]:
    """Build a MongoDB filter from non-reserved query parameters.

    Args:
        params: Raw query parameters
        field_types: Filterable fields and their casters

    Returns:
        Filter document

    Raises:
        ValidationFailedError: A value cannot be cast to its field type
    """
    filter_: dict[str, Any] = {}

    for key, raw in params.items():
        match = _FILTER_KEY.match(key)
        if not match:
            continue
        name, operator = match.groups()
        if name in RESERVED_PARAMS or name not in field_types:
            continue
        if operator is not None and operator not in OPERATORS:
            continue

        cast = field_types[name]
        try:
            if operator == "in":
                value: Any = [cast(item) for item in raw.split(",") if item]
            else:
                value = cast(raw)
        except ValueError as e:
            raise ValidationFailedError(f"Invalid {name}: {raw}") from e

        if operator is None:
            filter_[name] = value
        else:
            existing = filter_.get(name)
            condition = existing if isinstance(existing, dict) else {}
            condition[f"${operator}"] = value
            filter_[name] = condition

    return filter_


def parse_sort(
    sort: str | None, sortable: set[str] | frozenset[str] | None = None
) -> list[tuple[str, int]]:
    """``"-likes,title"`` -> ``[("likes", -1), ("title", 1), ("_id", ...)]``.

    Unknown fields are ignored; the default is newest first. ``_id`` is
    appended as a tie-breaker so pages never overlap.
    """
    order: list[tuple[str, int]] = []
    for token in (sort or "").split(","):
        token = token.strip()
        if not token:
            continue
        direction = -1 if token.startswith("-") else 1
        name = token.lstrip("-+")
        if sortable is not None and name not in sortable:
            continue
        order.append((name, direction))

    if not order:
        order = [(DEFAULT_SORT.lstrip("-"), -1)]

    if all(name != "_id" for name, _ in order):
        order.append(("_id", order[0][1]))
    return order


def parse_select(select: str | None) -> set[str] | None:
    """Comma separated field names, or None for all fields."""
    if not select:
        return None
    fields = {name.strip() for name in select.split(",") if name.strip()}
    return fields or None


def parse_positive_int(value: str | int | None, default: int) -> int:
    """Parse a positive integer, falling back to ``default``."""
    try:
        number = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass
class ListQuery:
    """Parsed listing request."""

    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)
    select: set[str] | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, str],
        field_types: Mapping[str, Caster],
        sortable: set[str] | frozenset[str] | None = None,
    ) -> "ListQuery":
        return cls(
            filter=build_filter(params, field_types),
            sort=parse_sort(params.get("sort"), sortable),
            select=parse_select(params.get("select")),
            page=parse_positive_int(params.get("page"), DEFAULT_PAGE),
            limit=parse_positive_int(params.get("limit"), DEFAULT_LIMIT),
        )


# ==============================================================================
# Pagination and selection
# ==============================================================================


def build_pagination(page: int, limit: int, total: int) -> dict[str, dict[str, int]]:
    """Neighbouring page links for an offset window.

    ``next`` is present when more documents follow the current page,
    ``prev`` when the current page is not the first.
    """
    pagination: dict[str, dict[str, int]] = {}
    start = (page - 1) * limit
    if page * limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if start > 0:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return pagination


def select_fields(model: BaseModel, select: set[str] | None) -> dict[str, Any]:
    """JSON dump of a response model restricted to selected fields.

    Names may be given by alias (``likeCount``) or attribute
    (``like_count``); the identifier is always kept.
    """
    data = model.model_dump(mode="json", by_alias=True)
    if select is None:
        return data

    fields = type(model).model_fields
    computed = type(model).model_computed_fields
    wanted = {"id", "_id"}
    for name in select:
        wanted.add(name)
        info = fields.get(name) or computed.get(name)
        if info is not None and info.alias:
            wanted.add(info.alias)

    return {key: value for key, value in data.items() if key in wanted}
