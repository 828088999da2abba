"""
Orders API: Order Service (Store Access)
=========================================

What:  Every operation on the orders collection.
How:   Each method issues exactly one collection call inside
       `pymongo.timeout(...)`, so the operation deadline is scoped to that
       call and released when the block exits on every path.
       Driver exceptions are translated into the application hierarchy:

           malformed id / body         → ValidationError       (400)
           find_one returned nothing   → NotFoundError         (404)
           selection/network/timeouts  → StoreUnavailableError (503)
           any other driver failure    → DatabaseError         (500)

Who:   Called by the route handlers in routes/orders.py with the collection
       handle resolved from the request.

No operation is retried. Concurrent requests rely on MongoDB's per-document
atomicity; no locking happens here.
"""

import logging
from typing import Any, Dict, List, Optional

import pymongo
from bson import ObjectId
from bson.errors import BSONError
from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure, ExecutionTimeout, PyMongoError

from orders_api.config import settings
from orders_api.exceptions import (
    DatabaseError,
    NotFoundError,
    OrdersAPIError,
    StoreUnavailableError,
)
from orders_api.models.order import Order, parse_object_id
from orders_api.schemas.order import (
    InsertResponse,
    OrderCreate,
    OrderResponse,
    WaiterUpdate,
)

logger = logging.getLogger(__name__)

INSERT_FAILED_MESSAGE = "order item was not created"


def translate_store_error(
    exc: Exception,
    operation: str,
    message: Optional[str] = None,
    **details: Any,
) -> OrdersAPIError:
    """
    Map a driver exception to StoreUnavailableError or DatabaseError.

    `message` replaces the driver text in the response when given; the
    driver text is always kept in the context. Logging is left to the
    global exception handler, which prints the context.
    """
    context: Dict[str, Any] = {
        "operation": operation,
        "error_type": type(exc).__name__,
        "driver_message": str(exc),
        **details,
    }
    unavailable = isinstance(exc, (ConnectionFailure, ExecutionTimeout)) or (
        isinstance(exc, PyMongoError) and exc.timeout
    )
    if unavailable:
        return StoreUnavailableError(message=message or str(exc), context=context)
    return DatabaseError(message=message or str(exc), context=context)


def decode_error(exc: PydanticValidationError, operation: str, **details: Any) -> DatabaseError:
    """A stored document whose values do not fit OrderResponse."""
    return DatabaseError(
        message=f"stored order could not be decoded: {exc.errors()[0]['msg']}",
        context={"operation": operation, **details},
    )


class OrderService:
    """
    Operations on the orders collection.

    Stateless apart from the operation timeout; the collection is passed
    into every call.
    """

    def __init__(self, operation_timeout: float = 100):
        self.operation_timeout = operation_timeout

    # ── Create ────────────────────────────────────────────────────────────

    async def create_order(
        self, collection: AsyncCollection, payload: OrderCreate
    ) -> InsertResponse:
        """
        Insert a new order with a freshly generated ObjectId.

        The payload has already been parsed and validated by FastAPI.
        Any store failure is reported with a fixed message.
        """
        order = payload.to_order()
        order.id = ObjectId()
        try:
            with pymongo.timeout(self.operation_timeout):
                result = await collection.insert_one(order.to_document())
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(
                e, "insert_one", message=INSERT_FAILED_MESSAGE, order_id=str(order.id)
            ) from e

        logger.info("Order created: %s (server=%s)", result.inserted_id, order.server)
        return InsertResponse(inserted_id=str(result.inserted_id))

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_orders(self, collection: AsyncCollection) -> List[OrderResponse]:
        """Every stored order. Unbounded; order of results is not guaranteed."""
        return await self._find(collection, {})

    async def list_orders_by_waiter(
        self, collection: AsyncCollection, waiter: str
    ) -> List[OrderResponse]:
        """Orders whose `server` equals `waiter` exactly."""
        return await self._find(collection, {"server": waiter})

    async def _find(
        self, collection: AsyncCollection, query: Dict[str, Any]
    ) -> List[OrderResponse]:
        try:
            with pymongo.timeout(self.operation_timeout):
                documents = await collection.find(query).to_list(None)
            return [
                OrderResponse.from_order(Order.from_document(document))
                for document in documents
            ]
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(e, "find", query=query) from e
        except PydanticValidationError as e:
            raise decode_error(e, "find", query=query) from e

    async def get_order(self, collection: AsyncCollection, order_id: str) -> OrderResponse:
        """
        Fetch one order by its hex identifier.

        Raises:
            ValidationError: `order_id` is not a valid ObjectId (400)
            NotFoundError:   no order has that id (404)
        """
        oid = parse_object_id(order_id)
        try:
            with pymongo.timeout(self.operation_timeout):
                document = await collection.find_one({"_id": oid})
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(e, "find_one", order_id=order_id) from e

        if document is None:
            raise NotFoundError(resource="order", resource_id=order_id)

        try:
            return OrderResponse.from_order(Order.from_document(document))
        except PydanticValidationError as e:
            raise decode_error(e, "find_one", order_id=order_id) from e

    # ── Update ────────────────────────────────────────────────────────────

    async def update_waiter(
        self, collection: AsyncCollection, order_id: str, update: WaiterUpdate
    ) -> int:
        """Set only the `server` field. Returns the modified count (0 or 1)."""
        oid = parse_object_id(order_id)
        try:
            with pymongo.timeout(self.operation_timeout):
                result = await collection.update_one(
                    {"_id": oid},
                    {"$set": {"server": update.server}},
                )
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(e, "update_one", order_id=order_id) from e

        logger.info(
            "Waiter update for %s: matched=%d modified=%d",
            order_id,
            result.matched_count,
            result.modified_count,
        )
        return result.modified_count

    async def replace_order(
        self, collection: AsyncCollection, order_id: str, payload: OrderCreate
    ) -> int:
        """
        Replace dish/price/server/table of an order. The store keeps `_id`.

        Returns the modified count (0 or 1).
        """
        oid = parse_object_id(order_id)
        replacement = payload.to_order().fields()
        try:
            with pymongo.timeout(self.operation_timeout):
                result = await collection.replace_one({"_id": oid}, replacement)
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(e, "replace_one", order_id=order_id) from e

        logger.info("Order %s replaced: modified=%d", order_id, result.modified_count)
        return result.modified_count

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_order(self, collection: AsyncCollection, order_id: str) -> int:
        """Delete one order. Returns the deleted count (0 when it did not exist)."""
        oid = parse_object_id(order_id)
        try:
            with pymongo.timeout(self.operation_timeout):
                result = await collection.delete_one({"_id": oid})
        except (PyMongoError, BSONError) as e:
            raise translate_store_error(e, "delete_one", order_id=order_id) from e

        logger.info("Order %s delete: deleted=%d", order_id, result.deleted_count)
        return result.deleted_count


order_service = OrderService(operation_timeout=settings.operation_timeout)
