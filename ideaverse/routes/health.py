"""
IdeaVerse Backend — Health Check Route
========================================

What:  Health endpoint for Docker health checks and load balancer probes.
How:   Probes the database (SELECT 1) and the identity provider, then
       aggregates an overall status.

Status levels:
    - healthy:   database reachable, identity provider available
    - degraded:  database reachable, identity provider down / circuit open /
                 not configured (reads work, authenticated writes are rejected)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from ideaverse import __version__
from ideaverse.database import engine
from ideaverse.schemas.idea import HealthResponse
from ideaverse.services.identity_service import identity_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports database and identity provider status plus uptime.",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Identity Provider ───────────────────────────────────────────
    idp_status = await identity_provider.health_check()
    if idp_status != "available" and overall != "unhealthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        identity_provider=idp_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
