"""MongoDB client management with connection pooling."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from src.mongodb.config import MongoDBConfig

logger = logging.getLogger(__name__)


class MongoDBClient:
    """Manages MongoDB connection lifecycle.

    Constructed once at startup and handed to every repository; there is no
    process-wide instance.
    """

    def __init__(
        self,
        config: MongoDBConfig,
        client: AsyncIOMotorClient | None = None,
    ) -> None:
        """Initialize the MongoDB client.

        Args:
            config: Connection settings.
            client: Optional pre-built Motor client (an in-memory client in tests).
        """
        self._config = config
        self._client = client

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get the MongoDB client instance, connecting on first use."""
        if self._client is None:
            self._client = AsyncIOMotorClient(
                self._config.connection_string,
                maxPoolSize=self._config.max_pool_size,
                minPoolSize=self._config.min_pool_size,
            )
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Get the default database instance."""
        return self.client[self._config.database_name]

    @property
    def config(self) -> MongoDBConfig:
        """Get the current configuration."""
        return self._config

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncIOMotorClientSession | None]:
        """Open one unit of work.

        Yields a session bound to a started transaction, or None when
        transactions are disabled. Repositories accept the yielded value as
        their `session` argument either way. Leaving the block normally
        commits; an exception aborts.
        """
        if not self._config.transactions_enabled:
            yield None
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

    @asynccontextmanager
    async def join_or_begin(
        self,
        session: AsyncIOMotorClientSession | None,
    ) -> AsyncIterator[AsyncIOMotorClientSession | None]:
        """Reuse the caller's unit of work, or open a new one."""
        if session is not None:
            yield session
            return
        async with self.transaction() as new_session:
            yield new_session

    async def close(self) -> None:
        """Close the MongoDB connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def ping(self) -> bool:
        """Check if the connection is alive."""
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping error: %s", e)
            return False
