"""Background worker process.

RUN:  python -m certsvc.worker            (queue consumer + periodic sweep)
      python -m certsvc.worker --sweep-once   (one sweep, then exit; for cron)

Two jobs share the event loop:

  1. The queue consumer pulls course_added tasks and fans
     check_outdated out to every certificate holder of the category.
  2. The sweeper finalizes expired pending deletions every
     SWEEP_INTERVAL_SECONDS.

Same image as the API, different command:
  api:    uvicorn certsvc.main:app --host 0.0.0.0 --port 8000
  worker: python -m certsvc.worker
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from certsvc.core.config import SETTINGS
from certsvc.core.errors import CertificationError
from certsvc.core.logging import setup_logging
from certsvc.services.container import service_scope
from certsvc.services.task_queue import COURSE_ADDED_QUEUE, task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("certsvc.worker")


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(COURSE_ADDED_QUEUE)
async def handle_course_added(payload: dict) -> None:
    """Mark every certificate of the category outdated if it misses the new course.

    Holders whose certificate flips also get a course_added notification
    when the payload names the course.
    """
    category = payload["category"]
    logger.info(
        "Course added category=%s course=%s",
        category,
        payload.get("course_id"),
        extra={"category": category},
    )
    async with service_scope() as services:
        transitioned = await services.certificates.check_outdated_for_category(
            category, payload.get("course_id")
        )
    logger.info("category=%s certificates now outdated: %d", category, transitioned)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


async def run_sweep_once() -> int:
    async with service_scope() as services:
        return await services.scheduler.sweep()


async def process_next(queue_name: str, timeout: int = 1) -> bool:
    """Dequeue and handle at most one task.  Returns False when the queue was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except (CertificationError, KeyError):
        # Bad payloads and store outages are logged; the collaborator can re-send.
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def consume_queues() -> None:
    queues = list(HANDLERS.keys())
    logger.info("Worker listening on queues: %s", queues)
    while True:
        idle = True
        for queue_name in queues:
            if await process_next(queue_name):
                idle = False
        if idle:
            # The in-memory queue returns immediately; don't spin.
            await asyncio.sleep(0.5)


async def sweep_forever(interval: int) -> None:
    logger.info("Deletion sweep every %ds", interval)
    while True:
        try:
            await run_sweep_once()
        except CertificationError:
            logger.exception("Sweep failed; retrying next interval")
        await asyncio.sleep(interval)


async def run_worker() -> None:
    await asyncio.gather(
        consume_queues(),
        sweep_forever(SETTINGS.sweep_interval_seconds),
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="certsvc.worker")
    parser.add_argument(
        "--sweep-once",
        action="store_true",
        help="run a single deletion sweep and exit",
    )
    args = parser.parse_args(argv)

    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

    if args.sweep_once:
        deleted = asyncio.run(run_sweep_once())
        logger.info("Sweep removed %d notifications", deleted)
        return
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
