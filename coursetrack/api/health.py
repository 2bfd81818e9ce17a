"""Health and readiness endpoints.

LIVENESS vs READINESS
----------------------
  /health (liveness):
    "Is this process alive?"  Always 200; the body reports per-dependency
    status so a dashboard can show a degraded instance without the
    orchestrator restarting it.

  /ready (readiness):
    "Can this instance take traffic?"  PostgreSQL is critical when it is
    configured: without it no enrollment can be read or written, so the
    instance answers 503 and drops out of the load balancer until the
    database comes back.

    Redis is NOT critical.  It only carries the notification queue, and a
    failed enqueue is logged and counted by the notifier rather than
    failing the request.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from coursetrack.core.config import SETTINGS
from coursetrack.db import engine as db
from coursetrack.db.redis import redis_pool
from coursetrack.services.task_queue import DEAD_LETTER_QUEUE, NOTIFICATIONS_QUEUE, task_queue

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


async def _check_database() -> str:
    if db.engine is None:
        return "not_configured"
    try:
        async with db.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        logger.exception("Database health check failed")
        return "degraded"


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
        return "ok"
    except Exception:
        logger.exception("Redis health check failed")
        return "degraded"


@router.get("/health")
async def health() -> dict:
    """Liveness probe plus dependency and queue status.

    Returns 200 even when degraded; the ``status`` field carries the
    actual health.
    """
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"

    queues: dict[str, int | None] = {}
    for name in (NOTIFICATIONS_QUEUE, DEAD_LETTER_QUEUE):
        try:
            queues[name] = await task_queue.queue_length(name)
        except Exception:
            logger.warning("Could not read length of queue %s", name)
            queues[name] = None

    return {
        "status": overall,
        "env": SETTINGS.app_env,
        "notify_mode": SETTINGS.notify_mode,
        "checks": checks,
        "queues": queues,
    }


@router.get("/ready")
async def ready() -> Response:
    """Readiness probe: 503 while a configured database is unreachable."""
    if await _check_database() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
