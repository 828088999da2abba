"""
Orders API: Connection Provider Tests
======================================

What:  Tests for MongoDatabase, the request dependencies and the lifespan.
How:   AsyncMongoClient is patched; no server is contacted.

What we test:
    ✅ connect() bounds server selection by the connect timeout and pings
    ✅ Connection failures become StartupError and release the client
    ✅ open_collection() is a pure lookup in the fixed database
    ✅ Startup aborts on missing configuration; shutdown closes the client
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from orders_api.config import settings
from orders_api.database import MongoDatabase, get_database, get_orders_collection
from orders_api.exceptions import StartupError
from orders_api.main import lifespan, open_database


@pytest.fixture
def mock_client_cls():
    with patch("orders_api.database.AsyncMongoClient") as client_cls:
        client = client_cls.return_value
        client.admin.command = AsyncMock(return_value={"ok": 1.0})
        client.close = AsyncMock()
        yield client_cls


class TestMongoDatabase:

    @pytest.mark.asyncio
    async def test_connect_pings_with_bounded_timeout(self, mock_client_cls):
        database = MongoDatabase("mongodb://db:27017", "cluster0", connect_timeout=10)

        await database.connect()

        mock_client_cls.assert_called_once_with(
            "mongodb://db:27017",
            serverSelectionTimeoutMS=10000,
            connectTimeoutMS=10000,
        )
        mock_client_cls.return_value.admin.command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_connect_failure_is_fatal(self, mock_client_cls):
        client = mock_client_cls.return_value
        client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        database = MongoDatabase("mongodb://db:27017", "cluster0")

        with pytest.raises(StartupError, match="no servers"):
            await database.connect()

        client.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            database.open_collection("orders")

    @pytest.mark.asyncio
    async def test_open_collection_uses_fixed_database(self, mock_client_cls):
        client = mock_client_cls.return_value
        database = MongoDatabase("mongodb://db:27017", "cluster0")
        await database.connect()

        collection = database.open_collection("orders")

        client.__getitem__.assert_called_with("cluster0")
        client.__getitem__.return_value.__getitem__.assert_called_with("orders")
        assert collection is client.__getitem__.return_value.__getitem__.return_value

    def test_open_collection_before_connect(self):
        with pytest.raises(RuntimeError):
            MongoDatabase("mongodb://db:27017", "cluster0").open_collection("orders")

    @pytest.mark.asyncio
    async def test_ping_reports_failure(self, mock_client_cls):
        database = MongoDatabase("mongodb://db:27017", "cluster0")
        await database.connect()
        mock_client_cls.return_value.admin.command.side_effect = OperationFailure("boom")

        assert await database.ping() is False

    @pytest.mark.asyncio
    async def test_ping_without_connection(self):
        assert await MongoDatabase("mongodb://db:27017", "cluster0").ping() is False

    @pytest.mark.asyncio
    async def test_ensure_indexes_creates_server_index(self, mock_client_cls):
        database = MongoDatabase("mongodb://db:27017", "cluster0")
        await database.connect()
        collection = database.open_collection("orders")
        collection.create_index = AsyncMock(return_value="server_1")

        await database.ensure_indexes("orders")

        collection.create_index.assert_awaited_once_with("server")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, mock_client_cls):
        database = MongoDatabase("mongodb://db:27017", "cluster0")
        await database.connect()

        await database.close()
        await database.close()

        mock_client_cls.return_value.close.assert_awaited_once()


class TestDependencies:

    def test_get_orders_collection_uses_configured_name(self):
        database = MagicMock()
        request = MagicMock()
        request.app.state.database = database

        collection = get_orders_collection(request)

        database.open_collection.assert_called_once_with(settings.orders_collection)
        assert collection is database.open_collection.return_value

    def test_get_database_without_startup(self):
        app = FastAPI()
        request = MagicMock()
        request.app = app

        with pytest.raises(RuntimeError):
            get_database(request)


class TestLifespan:

    @pytest.mark.asyncio
    async def test_missing_url_aborts_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "mongodb_url", "")

        with pytest.raises(StartupError, match="MONGODB_URL is not set"):
            await open_database()

    @pytest.mark.asyncio
    async def test_index_failure_is_not_fatal(self, monkeypatch):
        monkeypatch.setattr(settings, "mongodb_create_indexes", True)
        database = MagicMock()
        database.connect = AsyncMock()
        database.ensure_indexes = AsyncMock(side_effect=OperationFailure("not authorized"))

        with patch("orders_api.main.MongoDatabase", return_value=database):
            assert await open_database() is database

    @pytest.mark.asyncio
    async def test_lifespan_attaches_and_closes_database(self):
        app = FastAPI()
        database = MagicMock()
        database.close = AsyncMock()

        with patch("orders_api.main.open_database", AsyncMock(return_value=database)):
            async with lifespan(app):
                assert app.state.database is database

        database.close.assert_awaited_once()
        assert app.state.database is None

    @pytest.mark.asyncio
    async def test_lifespan_propagates_startup_error(self):
        app = FastAPI()
        failing = AsyncMock(side_effect=StartupError(message="Could not connect to MongoDB"))

        with patch("orders_api.main.open_database", failing):
            with pytest.raises(StartupError):
                async with lifespan(app):
                    pass
