"""Background task queue using Redis lists.

The course-creation collaborator tells us a category grew.  Fanning
check_outdated out to every certificate holder can touch thousands of
rows, so the hook only ENQUEUES a task and answers 202; the worker
process does the fan-out at its own pace.

  Producer (API):    LPUSH task onto tasks:<queue>
  Consumer (Worker): BRPOP from the same list

LPUSH to the head, BRPOP from the tail: FIFO.

Delivery is at-most-once: a worker crash mid-task loses that task.
The fan-out is idempotent, so the collaborator may simply re-send the
hook.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from certsvc.core.errors import DataUnavailable
from certsvc.core.metrics import QUEUE_DEPTH
from certsvc.db.redis import redis_pool

logger = logging.getLogger(__name__)

COURSE_ADDED_QUEUE = "course_added"


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of background work.

    payload must be JSON-serializable; for course_added it is
    {"category": ..., "course_id": ...}.
    """

    id: str
    queue: str
    payload: dict


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


class InMemoryTaskQueue:
    """In-process queue for dev and tests; the API and worker must share a process."""

    def __init__(self) -> None:
        self._queues: dict[str, list[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(id=str(uuid.uuid4()), queue=queue, payload=payload)
        tasks = self._queues.setdefault(queue, [])
        tasks.append(task)
        QUEUE_DEPTH.labels(queue_name=queue).set(len(tasks))
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        tasks = self._queues.get(queue, [])
        if not tasks:
            return None
        task = tasks.pop(0)
        QUEUE_DEPTH.labels(queue_name=queue).set(len(tasks))
        return task

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, []))

    def clear(self) -> None:
        self._queues.clear()


class RedisTaskQueue:
    """Redis-backed task queue using LPUSH/BRPOP."""

    _PREFIX = "tasks:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(id=str(uuid.uuid4()), queue=queue, payload=payload)
        task_json = json.dumps({"id": task.id, "queue": task.queue, "payload": task.payload})
        try:
            depth = await self._redis.lpush(f"{self._PREFIX}{queue}", task_json)
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.warning("Enqueue on [%s] failed: %s", queue, e)
            raise DataUnavailable(f"task queue unavailable for {queue}") from e
        QUEUE_DEPTH.labels(queue_name=queue).set(depth)
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        # BRPOP blocks up to `timeout` seconds; None on timeout.
        result = await self._redis.brpop(f"{self._PREFIX}{queue}", timeout=timeout)
        if result is None:
            return None
        _, task_json = result
        return Task(**json.loads(task_json))

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(f"{self._PREFIX}{queue}")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    task_queue: TaskQueue = RedisTaskQueue(redis_pool)
else:
    task_queue = InMemoryTaskQueue()
