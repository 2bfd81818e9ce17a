"""Redis-list queue for notification fan-out.

With NOTIFY_MODE=queue the API pushes each committed domain event onto
``notifications`` and returns; ``python -m coursetrack.worker`` pops and
runs the notifier.  Events whose notifier stages failed land on
``notifications_dead_letter`` with the names of the failed stages, where
they stay until an operator replays them (worker.replay_dead_letters).

  Producer (API):    LPUSH onto the list head
  Consumer (worker): BRPOP from the tail, so delivery is FIFO

Delivery is at-most-once: a worker that dies mid-task loses that task.

A ``timeout`` of 0 means "don't wait" on both backends, which is what the
replay loop and the tests rely on; positive values block for that many
seconds on Redis.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from coursetrack.core.clock import now_ts
from coursetrack.db.redis import redis_pool

NOTIFICATIONS_QUEUE = "notifications"
DEAD_LETTER_QUEUE = "notifications_dead_letter"


@dataclass(frozen=True, slots=True)
class Task:
    """One queued payload.

    payload is an event_to_payload() dict, plus ``failed_stages`` on the
    dead-letter queue.  enqueued_at feeds the delivery-lag histogram.
    """

    id: str
    queue: str
    payload: dict
    enqueued_at: int = 0


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


def _new_task(queue: str, payload: dict) -> Task:
    return Task(id=str(uuid.uuid4()), queue=queue, payload=payload, enqueued_at=now_ts())


class InMemoryTaskQueue:
    """Used when REDIS_URL is unset (tests, local dev).  Never blocks."""

    def __init__(self) -> None:
        self._queues: dict[str, list[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = _new_task(queue, payload)
        self._queues.setdefault(queue, []).append(task)
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        tasks = self._queues.get(queue, [])
        if tasks:
            return tasks.pop(0)
        return None

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, []))

    def clear(self) -> None:
        self._queues.clear()


class RedisTaskQueue:
    _PREFIX = "tasks:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _key(self, queue: str) -> str:
        return f"{self._PREFIX}{queue}"

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = _new_task(queue, payload)
        await self._redis.lpush(self._key(queue), json.dumps(asdict(task)))
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        if timeout <= 0:
            # BRPOP treats 0 as "block forever"
            raw = await self._redis.rpop(self._key(queue))
        else:
            result = await self._redis.brpop(self._key(queue), timeout=timeout)
            raw = None if result is None else result[1]
        if raw is None:
            return None
        return Task(**json.loads(raw))

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(self._key(queue))


if redis_pool is not None:
    task_queue: TaskQueue = RedisTaskQueue(redis_pool)
else:
    task_queue = InMemoryTaskQueue()
