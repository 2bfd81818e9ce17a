"""Background worker process for queued notifications.

RUN:    python -m coursetrack.worker
REPLAY: python -m coursetrack.worker --replay-dead-letters 100

Only needed with NOTIFY_MODE=queue.  In that mode the API pushes each
committed domain event onto the ``notifications`` queue and returns; this
process pops them and runs the notifier (activity entry, then achievement
evaluation), each stage in its own database transaction.

Same image, different command:
  api:    uvicorn coursetrack.main:app --host 0.0.0.0 --port 8000
  worker: python -m coursetrack.worker

FAILURES
---------
The notifier never raises for a failed stage: it logs, counts, and
dead-letters the event itself.  A payload that cannot even be decoded is
dead-lettered here with stage ``decode``.  Nothing is retried
automatically; an operator replays from ``notifications_dead_letter``
with --replay-dead-letters.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from coursetrack.core.clock import now_ts
from coursetrack.core.config import SETTINGS
from coursetrack.core.logging import setup_logging
from coursetrack.core.metrics import (
    DEAD_LETTERS_REPLAYED,
    NOTIFICATION_FAILURES,
    NOTIFICATION_LAG,
    QUEUE_DEPTH,
)
from coursetrack.services import notifier
from coursetrack.services.events import event_from_payload
from coursetrack.services.task_queue import (
    DEAD_LETTER_QUEUE,
    NOTIFICATIONS_QUEUE,
    task_queue,
)

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("coursetrack.worker")


HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(NOTIFICATIONS_QUEUE)
async def handle_notification(payload: dict) -> None:
    try:
        event = event_from_payload(payload)
    except (KeyError, TypeError, ValueError):
        NOTIFICATION_FAILURES.labels(stage="decode").inc()
        logger.exception("Undecodable notification payload type=%s", payload.get("type"))
        await notifier.dead_letter(payload, ["decode"])
        return

    ok = await notifier.notify(event)
    logger.info(
        "Notification %s for user=%s handled ok=%s",
        type(event).__name__,
        event.user_id,
        ok,
        extra={"event": type(event).__name__, "user_id": str(event.user_id)},
    )


async def run_once(queue_name: str, timeout: int = 1) -> bool:
    """Process at most one task from ``queue_name``.  False when idle."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    QUEUE_DEPTH.labels(queue_name=queue_name).set(
        await task_queue.queue_length(queue_name)
    )
    if task is None:
        return False
    if task.enqueued_at:
        NOTIFICATION_LAG.observe(max(0, now_ts() - task.enqueued_at))

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        # handlers dead-letter their own failures; this is the last resort
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def replay_dead_letters(limit: int = 100) -> int:
    """Move up to ``limit`` dead-lettered events back onto the notifications queue.

    The failed_stages and request_id markers are dropped; a stage that
    fails again dead-letters the event afresh.  Returns how many were moved.
    """
    moved = 0
    while moved < limit:
        task = await task_queue.dequeue(DEAD_LETTER_QUEUE, timeout=0)
        if task is None:
            break
        payload = {
            k: v
            for k, v in task.payload.items()
            if k not in ("failed_stages", "request_id")
        }
        await task_queue.enqueue(NOTIFICATIONS_QUEUE, payload)
        moved += 1
    if moved:
        DEAD_LETTERS_REPLAYED.inc(moved)
        logger.info("Replayed %d dead-lettered notifications", moved)
    return moved


async def run_worker() -> None:
    """Poll all registered queues and dispatch tasks to handlers."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        for queue_name in queues:
            await run_once(queue_name)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="python -m coursetrack.worker")
    parser.add_argument(
        "--replay-dead-letters",
        type=int,
        metavar="N",
        help="move up to N dead-lettered events back onto the queue and exit",
    )
    args = parser.parse_args(argv)

    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    if args.replay_dead_letters is not None:
        asyncio.run(replay_dead_letters(args.replay_dead_letters))
        return
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
