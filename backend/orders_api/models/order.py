"""
Orders API: Order Document Model
=================================

What:  In-process representation of an order document and its bson mapping.
How:   A dataclass that converts to and from the dict layout stored in the
       `orders` collection.

Stored layout:
    {
        "_id":    ObjectId,   assigned once at insertion, never replaced
        "dish":   str,
        "price":  float,
        "server": str,        the waiter; changed by update-waiter
        "table":  str,
    }

There are no relationships to other collections.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

from orders_api.exceptions import ValidationError

# Fields written by create and replace, in stored order.
ORDER_FIELDS = ("dish", "price", "server", "table")


@dataclass
class Order:
    """One restaurant order."""

    dish: Optional[str] = None
    price: Optional[float] = None
    server: Optional[str] = None
    table: Optional[str] = None
    id: Optional[ObjectId] = field(default=None)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Order":
        """Build an Order from a raw collection document. Missing fields become None."""
        return cls(
            id=document.get("_id"),
            dish=document.get("dish"),
            price=document.get("price"),
            server=document.get("server"),
            table=document.get("table"),
        )

    def fields(self) -> Dict[str, Any]:
        """The replaceable field set, without `_id`."""
        return {name: getattr(self, name) for name in ORDER_FIELDS}

    def to_document(self) -> Dict[str, Any]:
        """Full document for insertion. Requires an assigned id."""
        if self.id is None:
            raise ValueError("Order.id must be assigned before insertion")
        return {"_id": self.id, **self.fields()}

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, dish='{self.dish}', server='{self.server}')>"


def parse_object_id(value: str) -> ObjectId:
    """
    Parse a caller-supplied order identifier.

    Accepts the 24 character hex form only. Raises ValidationError (400)
    for anything else.
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValidationError(
            message=f"'{value}' is not a valid order id: {e}",
            field="id",
        ) from e
