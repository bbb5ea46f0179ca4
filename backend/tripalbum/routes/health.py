"""
TripAlbum Backend — Health Check Route
=======================================

What:  GET /health for container probes and load balancers.
How:   Runs SELECT 1 against the database and checks that the upload root
       is a writable directory.

Status levels:
    - healthy:   database connected and upload root writable (HTTP 200)
    - unhealthy: either check failed (HTTP 503)
"""

import logging
import os
import time
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tripalbum import __version__
from tripalbum.config import settings
from tripalbum.database import engine
from tripalbum.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def _check_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"
    return "connected"


def _check_upload_root() -> str:
    root = Path(settings.upload_root)
    if root.is_dir() and os.access(root, os.W_OK):
        return "writable"
    logger.warning("Health check: upload root %s is not a writable directory", root)
    return "unavailable"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "A dependency is down", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    database = await _check_database()
    upload_root = _check_upload_root()
    healthy = database == "connected" and upload_root == "writable"

    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=database,
        upload_root=upload_root,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not healthy:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
