"""In-memory stand-in for the motor database used by the repositories.

Wraps a ``mongomock`` database so that the collection methods the
repositories await are awaitable. Only the surface the application uses is
exposed.
"""

from itertools import islice
from typing import Any

import mongomock


class FakeCursor:
    """Awaitable-friendly wrapper over a mongomock cursor."""

    def __init__(self, cursor: Any):
        self._cursor = cursor

    def sort(self, *args: Any, **kwargs: Any) -> "FakeCursor":
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        if length is None:
            return list(self._cursor)
        return list(islice(self._cursor, length))


class FakeCollection:
    """Collection whose operations are coroutines, like motor's."""

    ASYNC_METHODS = frozenset(
        {
            "count_documents",
            "create_indexes",
            "delete_many",
            "delete_one",
            "find_one",
            "find_one_and_update",
            "insert_one",
        }
    )

    def __init__(self, collection: Any):
        self._collection = collection

    def find(self, *args: Any, **kwargs: Any) -> FakeCursor:
        return FakeCursor(self._collection.find(*args, **kwargs))

    def __getattr__(self, name: str) -> Any:
        if name not in self.ASYNC_METHODS:
            raise AttributeError(name)
        method = getattr(self._collection, name)

        async def call(*args: Any, **kwargs: Any) -> Any:
            return method(*args, **kwargs)

        return call


class FakeDatabase:
    """Database handle returning awaitable collections."""

    def __init__(self, name: str = "agora_test"):
        self._database = mongomock.MongoClient(tz_aware=True)[name]
        self.name = name

    def __getitem__(self, collection_name: str) -> FakeCollection:
        return FakeCollection(self._database[collection_name])

    async def command(self, command: str | dict[str, Any]) -> dict[str, Any]:
        return self._database.command(command)
