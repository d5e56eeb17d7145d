"""
Inkpost Backend — Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and checks that the media
       directory is writable.
Who:   Docker health checks, load balancers, monitoring systems.

Status levels:
    healthy:   database and storage usable (HTTP 200)
    degraded:  database up, storage unavailable (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app import __version__
from app.database import get_db_session
from app.dependencies import get_media_store
from app.schemas.common import HealthResponse
from app.services.media_store import MediaStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    media: MediaStore = Depends(get_media_store),
) -> HealthResponse:
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    if not (media.storage_root.is_dir() and os.access(media.storage_root, os.W_OK)):
        storage_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"
        logger.warning("Health check: storage not writable: %s", media.storage_root)

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
