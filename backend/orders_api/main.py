"""
Orders API: FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers and
       attaches the lifespan that owns the MongoDB connection.
Who:   uvicorn (`uvicorn orders_api.main:app`) or the `orders-api` script.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:   Request ID → Logging → GZip → CORS   │
    │                                                     │
    │  Routes:       /order, /orders, /orders/waiter/..., │
    │                /order/{id}[/waiter], /health        │
    │                                                     │
    │  Exception Handlers:                                │
    │    invalid_argument→400 │ not_found→404             │
    │    unavailable→503      │ internal→500              │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration
    3. Connect to MongoDB (10s bound) and ensure indexes
    Any failure in 2 or 3 aborts startup; uvicorn then exits.

    Shutdown:
    1. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from orders_api import __version__
from orders_api.config import settings
from orders_api.database import MongoDatabase
from orders_api.exceptions import OrdersAPIError, StartupError
from orders_api.middleware.logging import RequestLoggingMiddleware
from orders_api.middleware.request_id import RequestIDMiddleware, request_id_var
from orders_api.routes import health, orders

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once, first thing in the lifespan.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

async def open_database() -> MongoDatabase:
    """
    Validate configuration and connect to MongoDB.

    Raises StartupError for a missing/invalid MONGODB_URL or an unreachable
    server. There is no recovery path.
    """
    try:
        settings.validate_required()
    except ValueError as e:
        raise StartupError(message=str(e)) from e

    database = MongoDatabase(
        url=settings.mongodb_url,
        database_name=settings.mongodb_database,
        connect_timeout=settings.mongodb_connect_timeout,
    )
    await database.connect()

    if settings.mongodb_create_indexes:
        try:
            await database.ensure_indexes(settings.orders_collection)
        except PyMongoError as e:
            # Listing by waiter still works without the index, only slower.
            logger.warning("Could not create indexes on %s: %s", settings.orders_collection, e)

    return database


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Orders API %s starting up...", __version__)

    try:
        database = await open_database()
    except StartupError as e:
        logger.critical("Startup failed: %s", e.message)
        raise

    app.state.database = database
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Orders API shutting down...")
    await database.close()
    app.state.database = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten FastAPI's error list into `loc: msg; loc: msg`."""
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts) or "invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Every error response is `{"error": message}`.

    Handler hierarchy:
        OrdersAPIError          → status from its ErrorKind
        RequestValidationError  → 400 (malformed JSON, missing/ill-typed field)
        Exception (fallback)    → 500
    """

    @app.exception_handler(OrdersAPIError)
    async def handle_orders_api_error(request: Request, exc: OrdersAPIError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.kind.value, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, exc.kind.value, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        message = format_validation_errors(exc)
        logger.warning("[%s] Request validation failed: %s", rid, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "internal server error"})


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Orders API",
        description="CRUD backend for restaurant orders stored in MongoDB.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(orders.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "orders_api.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
