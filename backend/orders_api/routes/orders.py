"""
Orders API: Order Route Handlers
=================================

What:  The seven HTTP endpoints of the orders resource.
How:   Handlers stay thin. FastAPI parses and validates the body, the
       collection comes from the `get_orders_collection` dependency, and the
       OrderService performs the single store call. Errors propagate as
       OrdersAPIError subclasses and are rendered by the handler in main.py.

Route Inventory:
    POST         /order                   create, returns {"InsertedID": ...}
    GET          /orders                  list all
    GET          /orders/waiter/{waiter}  list by waiter
    GET          /order/{order_id}        get one
    PATCH, PUT   /order/{order_id}/waiter update the waiter only
    PUT          /order/{order_id}        replace dish/price/server/table
    DELETE       /order/{order_id}        delete

Update, replace and delete answer with a bare integer count.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from pymongo.asynchronous.collection import AsyncCollection

from orders_api.database import get_orders_collection
from orders_api.schemas.order import (
    ErrorResponse,
    InsertResponse,
    OrderCreate,
    OrderResponse,
    WaiterUpdate,
)
from orders_api.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])

_BAD_REQUEST = {400: {"description": "Malformed id or body", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Order not found", "model": ErrorResponse}}
_STORE_ERRORS = {
    500: {"description": "Store error", "model": ErrorResponse},
    503: {"description": "Store unavailable", "model": ErrorResponse},
}


@router.post(
    "/order",
    response_model=InsertResponse,
    responses={**_BAD_REQUEST, **_STORE_ERRORS},
    summary="Create an order",
)
async def create_order(
    payload: OrderCreate,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> InsertResponse:
    return await order_service.create_order(collection, payload)


@router.get(
    "/orders",
    response_model=List[OrderResponse],
    responses=_STORE_ERRORS,
    summary="List every order",
)
async def list_orders(
    collection: AsyncCollection = Depends(get_orders_collection),
) -> List[OrderResponse]:
    return await order_service.list_orders(collection)


@router.get(
    "/orders/waiter/{waiter}",
    response_model=List[OrderResponse],
    responses=_STORE_ERRORS,
    summary="List the orders served by one waiter",
)
async def list_orders_by_waiter(
    waiter: str,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> List[OrderResponse]:
    return await order_service.list_orders_by_waiter(collection, waiter)


@router.get(
    "/order/{order_id}",
    response_model=OrderResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_STORE_ERRORS},
    summary="Get one order",
)
async def get_order(
    order_id: str,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> OrderResponse:
    return await order_service.get_order(collection, order_id)


@router.api_route(
    "/order/{order_id}/waiter",
    methods=["PATCH", "PUT"],
    response_model=int,
    responses={**_BAD_REQUEST, **_STORE_ERRORS},
    summary="Change the waiter of an order",
)
async def update_waiter(
    order_id: str,
    update: WaiterUpdate,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> int:
    return await order_service.update_waiter(collection, order_id, update)


@router.put(
    "/order/{order_id}",
    response_model=int,
    responses={**_BAD_REQUEST, **_STORE_ERRORS},
    summary="Replace an order",
)
async def replace_order(
    order_id: str,
    payload: OrderCreate,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> int:
    return await order_service.replace_order(collection, order_id, payload)


@router.delete(
    "/order/{order_id}",
    response_model=int,
    responses={**_BAD_REQUEST, **_STORE_ERRORS},
    summary="Delete an order",
)
async def delete_order(
    order_id: str,
    collection: AsyncCollection = Depends(get_orders_collection),
) -> int:
    return await order_service.delete_order(collection, order_id)
