"""Database connection module."""

from src.core.database.documents import DocumentModel, PyObjectId, parse_object_id
from src.core.database.mongo import (
    MongoConnection,
    init_indexes,
    init_mongo,
)
from src.core.database.repository import MongoRepository


__all__ = [
    "DocumentModel",
    "MongoConnection",
    "MongoRepository",
    "PyObjectId",
    "init_indexes",
    "init_mongo",
    "parse_object_id",
]
