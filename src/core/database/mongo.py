"""Async MongoDB connection using motor.

Provides:
- Client lifecycle management
- Database handle for repositories
- Index initialization for every collection
"""

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from src.config.settings import Settings


logger = structlog.get_logger(__name__)


class MongoConnection:
    """One motor client and the configured database.

    Built from settings by whoever owns the process lifetime (the app
    lifespan, a script) and closed by the same owner. Repositories receive
    the database handle, never the connection.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: AsyncIOMotorClient | None = None
        self.database: AsyncIOMotorDatabase | None = None

    @property
    def is_connected(self) -> bool:
        return self.database is not None

    async def connect(self) -> AsyncIOMotorDatabase:
        """Open the client and verify the server answers.

        Returns:
            Database handle for the configured database name

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if self.database is not None:
            return self.database

        client = AsyncIOMotorClient(
            self.settings.mongo_uri,
            serverSelectionTimeoutMS=self.settings.mongo_server_selection_timeout_ms,
            socketTimeoutMS=self.settings.mongo_socket_timeout_ms,
            tz_aware=True,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error("mongo_connection_failed", error=str(e))
            client.close()
            raise ConnectionError(f"Failed to connect to MongoDB: {e}") from e

        self.client = client
        self.database = client[self.settings.mongo_database]
        logger.info("mongo_connected", database=self.settings.mongo_database)
        return self.database

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("mongo_disconnected")
        self.client = None
        self.database = None


async def init_mongo(connection: MongoConnection) -> AsyncIOMotorDatabase:
    """Connect and create indexes for all collections."""
    database = await connection.connect()
    await init_indexes(database)
    return database


async def init_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create indexes for all repositories (idempotent)."""
    # Imported here, feature modules depend on this package
    from src.auth.models import UserRepository
    from src.comments.models import CommentRepository
    from src.posts.models import PostRepository

    for repository_class in (UserRepository, PostRepository, CommentRepository):
        await repository_class(database).ensure_indexes()

    logger.info("mongo_indexes_created", database=database.name)
