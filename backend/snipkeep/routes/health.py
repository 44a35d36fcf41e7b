"""
SnipKeep Backend — Health Check Route
======================================

What:  Health check endpoint for monitoring and container probes.
How:   Verifies the data directory can be written and reports how many
       sessions this process currently holds.

Status levels:
    - healthy:   data directory writable (HTTP 200)
    - unhealthy: data directory missing and not creatable, or read-only (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from snipkeep import __version__
from snipkeep.schemas.auth import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Storage unavailable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Check that snippets and users can still be persisted.

    Expired sessions are purged as a side effect, so `active_sessions`
    counts only live ones.
    """
    storage_status = "writable"
    overall = "healthy"

    data_dir = request.app.state.record_store.data_dir
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(data_dir, os.W_OK):
            raise PermissionError(f"{data_dir} is not writable")
    except OSError as e:
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: data directory unusable: %s", e)

    sessions = request.app.state.session_store
    await sessions.expire()

    body = HealthResponse(
        status=overall,
        version=__version__,
        storage=storage_status,
        active_sessions=await sessions.count(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    status_code = 200 if overall == "healthy" else 503
    return JSONResponse(status_code=status_code, content=body.model_dump())
