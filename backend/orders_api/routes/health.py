"""
Orders API: Health Check Route
===============================

What:  Health check endpoint for container probes and load balancers.
How:   Pings MongoDB through the connection built at startup.

Status levels:
    - healthy:   store reachable (HTTP 200)
    - unhealthy: store unreachable or never connected (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from orders_api import __version__
from orders_api.schemas.order import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    database = getattr(request.app.state, "database", None)
    reachable = database is not None and await database.ping()
    if not reachable:
        logger.warning("Health check: MongoDB unreachable")

    body = HealthResponse(
        status="healthy" if reachable else "unhealthy",
        version=__version__,
        database="connected" if reachable else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if reachable else 503, content=body.model_dump())
