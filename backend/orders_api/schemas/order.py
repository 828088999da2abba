"""
Orders API: Pydantic Request/Response Schemas
==============================================

What:  The HTTP contract for the orders resource.
How:   FastAPI validates request bodies against these models (missing or
       ill-typed fields are rejected with 400 by the handler in main.py)
       and serializes responses through them.

Schemas are separate from the document model in models/order.py: the API
speaks hex string ids under `_id`, the store speaks ObjectId.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orders_api.models.order import Order


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class OrderCreate(BaseModel):
    """
    Body of POST /order and PUT /order/{id}.

    All four fields are required. An `_id` or `id` key in the body is
    ignored: identifiers are assigned by the service, never by the caller.
    """

    model_config = ConfigDict(extra="ignore")

    dish: str = Field(description="Name of the ordered item")
    # JSON numbers only: no strings, booleans, NaN or infinities.
    price: float = Field(strict=True, allow_inf_nan=False, description="Price of the item")
    server: str = Field(description="Waiter assigned to the order")
    table: str = Field(description="Table the order belongs to")

    @field_validator("dish", "server", "table")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    def to_order(self) -> Order:
        return Order(dish=self.dish, price=self.price, server=self.server, table=self.table)


class WaiterUpdate(BaseModel):
    """Body of PATCH /order/{id}/waiter."""

    model_config = ConfigDict(extra="ignore")

    server: str = Field(description="New waiter for the order")

    @field_validator("server")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class OrderResponse(BaseModel):
    """
    A stored order as returned by the list and get endpoints.

    Fields other than `_id` are optional: documents written by other
    clients may lack them and are still returned.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id", description="Order identifier (24 char hex)")
    dish: Optional[str] = None
    price: Optional[float] = None
    server: Optional[str] = None
    table: Optional[str] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            dish=order.dish,
            price=order.price,
            server=order.server,
            table=order.table,
        )


class InsertResponse(BaseModel):
    """Acknowledgment returned by POST /order."""

    model_config = ConfigDict(populate_by_name=True)

    inserted_id: str = Field(alias="InsertedID", description="Identifier of the new order")


class ErrorResponse(BaseModel):
    """Every error response: a single `error` message."""

    error: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """Response of GET /health."""

    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since the service started")
