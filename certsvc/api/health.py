"""Health and readiness endpoints.

  /health (liveness):  is the process alive?  Always 200 while it can
                       answer; the body reports per-dependency status.
  /ready (readiness):  can this instance serve traffic right now?
                       503 when a configured dependency is unreachable,
                       so the load balancer drains it without a restart.

PostgreSQL is critical when configured: every ledger operation needs it.
Redis only carries the course_added queue, but a configured and
unreachable Redis still fails readiness because the hook would 503.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from certsvc.db import engine as db_engine
from certsvc.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception as e:
        logger.warning("Redis health check failed: %s", e)
        return "degraded"
    return "ok"


async def _check_database() -> str:
    if db_engine.engine is None:
        return "not_configured"
    try:
        async with db_engine.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return "degraded"
    return "ok"


async def _run_checks() -> dict[str, str]:
    return {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }


@router.get("/health")
async def health() -> dict:
    """Liveness check + dependency status.

    Returns 200 even when degraded; a 503 here would make the
    orchestrator restart the container over a partial outage.
    """
    checks = await _run_checks()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    checks = await _run_checks()
    if "degraded" in checks.values():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
