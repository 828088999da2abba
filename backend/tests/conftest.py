"""
Orders API: Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   No MongoDB is needed. Endpoint tests run against InMemoryCollection,
       a small double implementing the collection methods the service uses
       and returning real pymongo result objects. Service unit tests use
       unittest.mock collections.

Fixtures (function-scoped):
    ├── orders_collection:   empty InMemoryCollection
    ├── mock_collection:     MagicMock with AsyncMock collection methods
    ├── sample_order:        valid order request body
    └── test_client:         HTTPX AsyncClient bound to the FastAPI app
"""

import copy
import os
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before orders_api.config is imported anywhere.
os.environ["MONGODB_URL"] = "mongodb://localhost:27017"
os.environ["MONGODB_DATABASE"] = "orders_test"
os.environ["LOG_LEVEL"] = "WARNING"


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Collection
# ══════════════════════════════════════════════════════════════════════════


class InMemoryCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        if length is None:
            return list(self._documents)
        return self._documents[:length]


class InMemoryCollection:
    """
    Equality-filter subset of AsyncCollection.

    Set `fail_with` to an exception instance to make every call raise it.
    """

    def __init__(self):
        self.documents: Dict[Any, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    def _first(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents.values():
            if self._matches(document, query):
                return document
        return None

    async def insert_one(self, document: Dict[str, Any]) -> InsertOneResult:
        self._check_failure()
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        if stored["_id"] in self.documents:
            raise DuplicateKeyError("E11000 duplicate key error")
        self.documents[stored["_id"]] = stored
        return InsertOneResult(stored["_id"], acknowledged=True)

    def find(self, query: Dict[str, Any]) -> InMemoryCursor:
        self._check_failure()
        return InMemoryCursor(
            [copy.deepcopy(d) for d in self.documents.values() if self._matches(d, query)]
        )

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check_failure()
        document = self._first(query)
        return copy.deepcopy(document) if document is not None else None

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]) -> UpdateResult:
        self._check_failure()
        document = self._first(query)
        if document is None:
            return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, acknowledged=True)
        modified = 0
        for key, value in update["$set"].items():
            if document.get(key) != value:
                document[key] = value
                modified = 1
        return UpdateResult({"n": 1, "nModified": modified, "ok": 1.0}, acknowledged=True)

    async def replace_one(
        self, query: Dict[str, Any], replacement: Dict[str, Any]
    ) -> UpdateResult:
        self._check_failure()
        document = self._first(query)
        if document is None:
            return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, acknowledged=True)
        new_document = {"_id": document["_id"], **copy.deepcopy(replacement)}
        modified = int(new_document != document)
        self.documents[document["_id"]] = new_document
        return UpdateResult({"n": 1, "nModified": modified, "ok": 1.0}, acknowledged=True)

    async def delete_one(self, query: Dict[str, Any]) -> DeleteResult:
        self._check_failure()
        document = self._first(query)
        if document is None:
            return DeleteResult({"n": 0, "ok": 1.0}, acknowledged=True)
        del self.documents[document["_id"]]
        return DeleteResult({"n": 1, "ok": 1.0}, acknowledged=True)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def orders_collection():
    return InMemoryCollection()


@pytest.fixture
def mock_collection():
    """
    A MagicMock standing in for AsyncCollection.

    Usage:
        mock_collection.find_one.return_value = {"_id": oid, ...}
        mock_collection.find.return_value.to_list.return_value = [...]
    """
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.find.return_value.to_list = AsyncMock(return_value=[])
    return collection


@pytest.fixture
def sample_order():
    return {
        "dish": "Margherita pizza",
        "price": 11.5,
        "server": "alice",
        "table": "12",
    }


@pytest_asyncio.fixture
async def test_client(orders_collection):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The lifespan does not run, so the orders collection dependency is
    overridden with `orders_collection`.
    """
    from orders_api.database import get_orders_collection
    from orders_api.main import app

    app.dependency_overrides[get_orders_collection] = lambda: orders_collection
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
