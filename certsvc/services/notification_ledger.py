"""Notification creation, read state, and the deferred-deletion state machine.

    active ──mark_for_deletion──▶ pending_delete ──sweep (delete_at <= now)──▶ deleted
      ▲                                │
      └─────────cancel_deletion────────┘

Every transition goes through a compare-and-set on the repo.  When the
CAS misses, a follow-up read explains why.  A record that is gone is in
the terminal deleted state: InvalidState for a second delete request,
"too late" for a cancel.  A record owned by someone else is NotFound.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from typing import Any

from certsvc.core.clock import Clock, utc_now
from certsvc.core.errors import DeletionAlreadyFinalized, InvalidState, NotFound
from certsvc.core.metrics import DELETION_TRANSITIONS, NOTIFICATIONS_CREATED
from certsvc.models.notification import DELETION_GRACE_SECONDS, Notification
from certsvc.repos.notification_repo import NotificationRepo

logger = logging.getLogger(__name__)


def remaining_time(delete_at: int, now: int) -> datetime.timedelta:
    """Time left before a pending deletion becomes final; zero once due."""
    return datetime.timedelta(seconds=max(0, delete_at - now))


class NotificationLedger:
    def __init__(self, repo: NotificationRepo, *, clock: Clock = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: str,
        related_data: Mapping[str, Any] | None = None,
    ) -> Notification:
        notification = Notification.new(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            created_at=self._clock(),
            related_data=related_data,
        )
        await self._repo.add(notification)
        NOTIFICATIONS_CREATED.labels(type=type).inc()
        logger.info(
            "Notification created id=%s user=%s type=%s",
            notification.id,
            user_id,
            type,
            extra={"notification_id": notification.id},
        )
        return notification

    async def get(self, notification_id: str, *, user_id: str | None = None) -> Notification:
        notification = await self._repo.get(notification_id)
        if notification is None or (
            user_id is not None and notification.user_id != user_id
        ):
            raise NotFound(f"notification {notification_id} not found")
        return notification

    async def list_notifications(
        self, user_id: str, *, limit: int = 100, offset: int = 0
    ) -> list[Notification]:
        return await self._repo.list_by_user(user_id, limit=limit, offset=offset)

    async def unread_count(self, user_id: str) -> int:
        return await self._repo.count_unread(user_id)

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------

    async def mark_read(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification:
        """Idempotent: an already-read notification is returned unchanged."""
        notification = await self._repo.mark_read(notification_id, user_id=user_id)
        if notification is None:
            raise NotFound(f"notification {notification_id} not found")
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        changed = await self._repo.mark_all_read(user_id)
        logger.info("Marked %d notifications read for user=%s", changed, user_id)
        return changed

    # ------------------------------------------------------------------
    # Deferred deletion
    # ------------------------------------------------------------------

    async def mark_for_deletion(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification:
        delete_at = self._clock() + DELETION_GRACE_SECONDS
        updated = await self._repo.mark_pending_delete(
            notification_id, delete_at, user_id=user_id
        )
        if updated is not None:
            DELETION_TRANSITIONS.labels(action="mark", result="ok").inc()
            logger.info(
                "Notification id=%s scheduled for deletion at %d",
                notification_id,
                delete_at,
                extra={"notification_id": notification_id},
            )
            return updated

        current = await self._repo.get(notification_id)
        if current is not None and user_id is not None and current.user_id != user_id:
            DELETION_TRANSITIONS.labels(action="mark", result="not_found").inc()
            raise NotFound(f"notification {notification_id} not found")
        DELETION_TRANSITIONS.labels(action="mark", result="invalid_state").inc()
        if current is None:
            # Already deleted (swept or removed immediately).
            logger.warning(
                "Rejected delete request for notification id=%s: already deleted",
                notification_id,
            )
            raise InvalidState(f"notification {notification_id} is already deleted")
        logger.warning(
            "Rejected delete request for notification id=%s: already pending",
            notification_id,
        )
        raise InvalidState(
            f"notification {notification_id} is already scheduled for deletion"
        )

    async def cancel_deletion(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification:
        restored = await self._repo.clear_pending_delete(notification_id, user_id=user_id)
        if restored is not None:
            DELETION_TRANSITIONS.labels(action="cancel", result="ok").inc()
            logger.info(
                "Deletion cancelled for notification id=%s",
                notification_id,
                extra={"notification_id": notification_id},
            )
            return restored

        current = await self._repo.get(notification_id)
        if current is None:
            # The sweep (or an immediate delete) committed first.
            DELETION_TRANSITIONS.labels(action="cancel", result="not_found").inc()
            raise DeletionAlreadyFinalized(
                f"notification {notification_id} was already deleted; too late to cancel"
            )
        if user_id is not None and current.user_id != user_id:
            DELETION_TRANSITIONS.labels(action="cancel", result="not_found").inc()
            raise NotFound(f"notification {notification_id} not found")
        DELETION_TRANSITIONS.labels(action="cancel", result="invalid_state").inc()
        logger.warning(
            "Rejected cancel for notification id=%s: not pending deletion",
            notification_id,
        )
        raise InvalidState(f"notification {notification_id} is not pending deletion")

    async def delete(self, notification_id: str, *, user_id: str | None = None) -> None:
        """Immediate, permanent deletion regardless of pending state."""
        if not await self._repo.delete(notification_id, user_id=user_id):
            raise NotFound(f"notification {notification_id} not found")
        logger.info(
            "Notification id=%s deleted immediately",
            notification_id,
            extra={"notification_id": notification_id},
        )

    def remaining_time(self, notification: Notification) -> datetime.timedelta | None:
        """Grace time left for a pending notification; None when active."""
        if not notification.pending_delete or notification.delete_at is None:
            return None
        return remaining_time(notification.delete_at, self._clock())
