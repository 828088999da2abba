"""
Orders API: Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a message, an optional context dict and an
       ErrorKind. The global handler in main.py maps the kind to an HTTP
       status and renders `{"error": message}`.
Who:   Raised by the service layer and the connection provider.

Exception Hierarchy:
    OrdersAPIError (base)
    ├── ValidationError          → invalid_argument → 400
    ├── NotFoundError            → not_found        → 404
    ├── StoreUnavailableError    → unavailable      → 503
    ├── DatabaseError            → internal         → 500
    └── StartupError             (fatal, aborts the lifespan)
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure categories at the store-access boundary."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


class OrdersAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Error description returned to the client
        context:  Additional debug info (logged, never returned)
        kind:     ErrorKind deciding the HTTP status
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(OrdersAPIError):
    """
    Raised when client input is unusable.

    When:    Malformed order identifier, body missing a required field.
    HTTP:    400 Bad Request
    """

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(OrdersAPIError):
    """
    Raised when a requested document does not exist.

    The driver returns None from find_one; the service converts that into
    this exception so the handler can answer 404.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreUnavailableError(OrdersAPIError):
    """
    Raised when MongoDB cannot be reached or an operation runs out of time.

    When:    Server selection timeout, network failure, operation timeout.
    HTTP:    503 Service Unavailable
    """

    kind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        message: str = "The order store is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(OrdersAPIError):
    """
    Raised when a store operation fails for any other reason.

    The message is the driver's error text unless the caller supplies a
    fixed one (insertion uses a generic message).
    HTTP:    500 Internal Server Error
    """

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StartupError(OrdersAPIError):
    """
    Raised when the service cannot start: missing configuration or an
    unreachable store. Never handled; it aborts application startup.
    """

    def __init__(
        self,
        message: str = "Application startup failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
