"""Finalizes expired pending deletions.

The deadline lives in the notification row (delete_at), not in an
in-process timer, so a restart loses nothing: the next sweep after the
deadline removes the record.  What triggers a sweep is up to the
deployment:

  - the worker loop (python -m certsvc.worker) every SWEEP_INTERVAL_SECONDS
  - POST /v1/admin/notifications/sweep
  - lazily, per user, before GET /v1/notifications
"""

from __future__ import annotations

import logging
import time

from certsvc.core.clock import Clock, utc_now
from certsvc.core.metrics import NOTIFICATIONS_SWEPT, SWEEP_DURATION
from certsvc.repos.notification_repo import NotificationRepo

logger = logging.getLogger(__name__)


class DeletionScheduler:
    def __init__(self, repo: NotificationRepo, *, clock: Clock = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    async def sweep(self, now: int | None = None, *, user_id: str | None = None) -> int:
        """Delete every pending notification whose delete_at <= now.

        Returns how many records were removed.  Running it again with the
        same ``now`` removes nothing.
        """
        if now is None:
            now = self._clock()
        start = time.monotonic()
        deleted = await self._repo.delete_expired(now, user_id=user_id)
        SWEEP_DURATION.observe(time.monotonic() - start)

        if deleted:
            NOTIFICATIONS_SWEPT.inc(len(deleted))
            logger.info(
                "Sweep removed %d notifications (now=%d scope=%s)",
                len(deleted),
                now,
                user_id or "all",
            )
        return len(deleted)
