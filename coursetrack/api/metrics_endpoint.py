"""Prometheus scrape endpoint.

Returns the text exposition format, not JSON.  Besides the HTTP request
metrics this carries the domain counters (lesson completions, quiz
attempts by result, achievements granted by code, notifier failures by
stage) and the notification queue depth gauge.

In production, restrict access to /metrics to the Prometheus server.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from coursetrack.core.metrics import QUEUE_DEPTH
from coursetrack.services.task_queue import DEAD_LETTER_QUEUE, NOTIFICATIONS_QUEUE, task_queue

router = APIRouter(tags=["observability"])

logger = logging.getLogger(__name__)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose all Prometheus metrics in text exposition format."""
    for name in (NOTIFICATIONS_QUEUE, DEAD_LETTER_QUEUE):
        try:
            QUEUE_DEPTH.labels(queue_name=name).set(await task_queue.queue_length(name))
        except Exception:
            # keep the last value; the scrape itself must not fail
            logger.warning("Could not read length of queue %s", name)
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
