"""
Orders API: Document Store Connection
======================================

What:  Owns the single MongoDB client and hands out collection handles.
How:   MongoDatabase is built once in the app lifespan, connected with a
       bounded timeout, and stored on `app.state.database`. Route handlers
       receive their collection through the `get_orders_collection`
       dependency, so nothing reads a module-level client.
When:  Connected at startup, closed at shutdown.

The AsyncMongoClient keeps its own connection pool and is safe to share
between concurrent requests.
"""

import logging
from typing import Any, Dict, Optional

import pymongo
from fastapi import Request
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from orders_api.config import settings
from orders_api.exceptions import StartupError

logger = logging.getLogger(__name__)


class MongoDatabase:
    """
    Connection provider for the order store.

    Attributes:
        url:              MongoDB connection URI
        database_name:    Fixed database every collection is opened in
        connect_timeout:  Seconds allowed for server selection and the startup ping
    """

    def __init__(
        self,
        url: str,
        database_name: str,
        connect_timeout: float = 10,
        client_options: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        self.database_name = database_name
        self.connect_timeout = connect_timeout
        self._client_options = client_options or {}
        self._client: Optional[AsyncMongoClient] = None

    @property
    def client(self) -> AsyncMongoClient:
        if self._client is None:
            raise RuntimeError("MongoDatabase.connect() has not been called")
        return self._client

    @property
    def database(self) -> AsyncDatabase:
        return self.client[self.database_name]

    async def connect(self) -> None:
        """
        Create the client and confirm the server answers a ping.

        Raises StartupError if the URI is rejected by the driver or the
        server cannot be reached within `connect_timeout` seconds.
        """
        timeout_ms = int(self.connect_timeout * 1000)
        try:
            self._client = AsyncMongoClient(
                self.url,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
                **self._client_options,
            )
            with pymongo.timeout(self.connect_timeout):
                await self._client.admin.command("ping")
        except (PyMongoError, ValueError) as e:
            if self._client is not None:
                await self._client.close()
                self._client = None
            raise StartupError(
                message=f"Could not connect to MongoDB: {e}",
                context={"database": self.database_name},
            ) from e

        logger.info("Connected to MongoDB (database=%s)", self.database_name)

    def open_collection(self, name: str) -> AsyncCollection:
        """Return a handle to `name` in the fixed database. No I/O."""
        return self.database[name]

    async def ensure_indexes(self, collection_name: str) -> None:
        """Create the non-unique `server` index used by list-by-waiter."""
        collection = self.open_collection(collection_name)
        with pymongo.timeout(self.connect_timeout):
            index_name = await collection.create_index("server")
        logger.info("Index ready: %s.%s", collection_name, index_name)

    async def ping(self) -> bool:
        """Lightweight reachability check for the health probe."""
        try:
            with pymongo.timeout(self.connect_timeout):
                await self.client.admin.command("ping")
            return True
        except (PyMongoError, RuntimeError) as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            logger.info("MongoDB connection closed")


# ── Request Dependencies ──────────────────────────────────────────────────

def get_database(request: Request) -> MongoDatabase:
    """FastAPI dependency returning the connection built during startup."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("The MongoDB connection was not initialized")
    return database


def get_orders_collection(request: Request) -> AsyncCollection:
    """FastAPI dependency returning the orders collection handle."""
    return get_database(request).open_collection(settings.orders_collection)
