"""Generic MongoDB repository.

Implements the resource store contract shared by users, posts and
comments. Repositories return plain documents (dicts keyed as stored);
schema validation goes through the collection's ``DocumentModel``.
"""

import re
from datetime import UTC, datetime
from typing import Any, ClassVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import IndexModel, ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

from src.core.database.documents import DocumentModel, parse_object_id
from src.core.errors import DuplicateKeyError
from src.core.logging import get_logger


logger = get_logger(__name__)

Document = dict[str, Any]

# "E11000 duplicate key error collection: db.users index: email_1 dup key: ..."
_INDEX_NAME_PATTERN = re.compile(r"index: (?:\$)?(\w+?)_-?1")


def duplicate_key_field(error: MongoDuplicateKeyError) -> str:
    """Name of the field whose unique index rejected a write."""
    details = error.details or {}
    for key in ("keyValue", "keyPattern"):
        values = details.get(key)
        if values:
            return next(iter(values))

    match = _INDEX_NAME_PATTERN.search(str(error))
    if match:
        return match.group(1)
    return "value"


class MongoRepository:
    """Base repository for one collection.

    Subclasses set:
        collection_name: MongoDB collection
        document_model: Pydantic schema for documents of the collection
        resource_name: Name used in not-found messages
        hidden_fields: Stored keys left out of reads unless requested
        indexes: Index definitions created at startup
    """

    collection_name: ClassVar[str]
    document_model: ClassVar[type[DocumentModel]]
    resource_name: ClassVar[str] = "resource"
    hidden_fields: ClassVar[tuple[str, ...]] = ()
    indexes: ClassVar[list[IndexModel]] = []

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database
        self.collection: AsyncIOMotorCollection = database[self.collection_name]

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _projection(
        self, projection: dict[str, int] | None, include_hidden: bool
    ) -> dict[str, int] | None:
        if projection is not None or include_hidden or not self.hidden_fields:
            return projection
        return dict.fromkeys(self.hidden_fields, 0)

    def _strip_hidden(self, document: Document) -> Document:
        for field in self.hidden_fields:
            document.pop(field, None)
        return document

    @staticmethod
    def object_id(value: Any) -> ObjectId:
        """Coerce an identifier, raising ValidationFailedError if malformed."""
        return parse_object_id(value)

    # ==========================================================================
    # Contract
    # ==========================================================================

    async def ensure_indexes(self) -> None:
        """Create configured indexes (idempotent)."""
        if self.indexes:
            await self.collection.create_indexes(self.indexes)

    async def create(self, data: dict[str, Any]) -> Document:
        """Validate and insert a new document.

        Raises:
            ValidationFailedError: Schema validation failed
            DuplicateKeyError: A unique field already holds the value
        """
        document = self.document_model.validate_document(data).to_document()
        now = datetime.now(UTC)
        document["createdAt"] = now
        document["updatedAt"] = now

        try:
            result = await self.collection.insert_one(document)
        except MongoDuplicateKeyError as e:
            field = duplicate_key_field(e)
            logger.info(
                "duplicate_key_rejected",
                collection=self.collection_name,
                field=field,
            )
            raise DuplicateKeyError(field) from e

        document["_id"] = result.inserted_id
        return self._strip_hidden(document)

    async def find_by_id(
        self,
        document_id: Any,
        projection: dict[str, int] | None = None,
        include_hidden: bool = False,
    ) -> Document | None:
        """Fetch by identifier; None when absent."""
        return await self.collection.find_one(
            {"_id": self.object_id(document_id)},
            self._projection(projection, include_hidden),
        )

    async def find_one(
        self,
        filter_: dict[str, Any],
        projection: dict[str, int] | None = None,
        include_hidden: bool = False,
    ) -> Document | None:
        """Fetch the first document matching a filter; None when absent."""
        return await self.collection.find_one(
            filter_, self._projection(projection, include_hidden)
        )

    async def find_many(
        self,
        filter_: dict[str, Any] | None = None,
        sort: list[tuple[str, int]] | None = None,
        skip: int = 0,
        limit: int = 0,
        projection: dict[str, int] | None = None,
    ) -> list[Document]:
        """Fetch documents matching a filter, sorted and windowed.

        ``limit=0`` means no limit.
        """
        cursor = self.collection.find(
            filter_ or {}, self._projection(projection, False)
        )
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def count_matching(self, filter_: dict[str, Any] | None = None) -> int:
        """Count documents matching a filter."""
        return await self.collection.count_documents(filter_ or {})

    async def update_by_id(
        self,
        document_id: Any,
        patch: dict[str, Any],
        run_validators: bool = True,
    ) -> Document | None:
        """Apply a partial update and return the updated document.

        With ``run_validators`` the patched document is validated against
        the schema before anything is written.

        Returns:
            Updated document, or None if no document has this identifier

        Raises:
            ValidationFailedError: Patched document fails the schema
            DuplicateKeyError: Patch collides with a unique field
        """
        oid = self.object_id(document_id)
        changes = {k: v for k, v in patch.items() if k not in ("_id", "createdAt")}

        if run_validators:
            current = await self.collection.find_one({"_id": oid})
            if current is None:
                return None
            validated = self.document_model.validate_document(
                {**current, **changes}
            ).to_document()
            # Keep validator normalization (trimmed, lowercased) for patched keys
            changes = {k: validated.get(k, v) for k, v in changes.items()}

        changes["updatedAt"] = datetime.now(UTC)

        try:
            return await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                projection=self._projection(None, False),
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError as e:
            raise DuplicateKeyError(duplicate_key_field(e)) from e

    async def delete_by_id(self, document_id: Any) -> bool:
        """Delete by identifier; True when a document was removed."""
        result = await self.collection.delete_one({"_id": self.object_id(document_id)})
        return result.deleted_count > 0

    async def delete_many(self, filter_: dict[str, Any]) -> int:
        """Delete all documents matching a filter; number removed."""
        result = await self.collection.delete_many(filter_)
        return result.deleted_count

    # ==========================================================================
    # Array helpers
    # ==========================================================================

    async def add_to_set(
        self, document_id: Any, field: str, value: Any
    ) -> Document | None:
        """Add a value to an array field unless already present."""
        return await self.collection.find_one_and_update(
            {"_id": self.object_id(document_id)},
            {"$addToSet": {field: value}, "$set": {"updatedAt": datetime.now(UTC)}},
            projection=self._projection(None, False),
            return_document=ReturnDocument.AFTER,
        )

    async def push(self, document_id: Any, field: str, value: Any) -> Document | None:
        """Append a value to an array field."""
        return await self.collection.find_one_and_update(
            {"_id": self.object_id(document_id)},
            {"$push": {field: value}, "$set": {"updatedAt": datetime.now(UTC)}},
            projection=self._projection(None, False),
            return_document=ReturnDocument.AFTER,
        )

    async def pull(self, document_id: Any, field: str, value: Any) -> Document | None:
        """Remove every occurrence of a value from an array field."""
        return await self.collection.find_one_and_update(
            {"_id": self.object_id(document_id)},
            {"$pull": {field: value}, "$set": {"updatedAt": datetime.now(UTC)}},
            projection=self._projection(None, False),
            return_document=ReturnDocument.AFTER,
        )
