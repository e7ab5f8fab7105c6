from __future__ import annotations

import dataclasses
import threading
from typing import Protocol

from certsvc.models.notification import Notification


class NotificationRepo(Protocol):
    """Persistence for notifications.

    Every state transition is a compare-and-set: the method applies the
    change only if the record is in the expected state (and, when
    ``user_id`` is given, owned by that user) and returns None otherwise.
    """

    async def add(self, notification: Notification) -> None: ...
    async def get(self, notification_id: str) -> Notification | None: ...
    async def list_by_user(
        self, user_id: str, *, limit: int = 100, offset: int = 0
    ) -> list[Notification]: ...
    async def count_unread(self, user_id: str) -> int: ...
    async def mark_read(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None: ...
    async def mark_all_read(self, user_id: str) -> int: ...
    async def mark_pending_delete(
        self, notification_id: str, delete_at: int, *, user_id: str | None = None
    ) -> Notification | None: ...
    async def clear_pending_delete(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None: ...
    async def delete(
        self, notification_id: str, *, user_id: str | None = None
    ) -> bool: ...
    async def delete_expired(
        self, now: int, *, user_id: str | None = None
    ) -> list[str]: ...


class InMemoryNotificationRepo:
    """Dict-backed repo; one lock makes each check-and-write atomic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, Notification] = {}

    def _owned(self, notification_id: str, user_id: str | None) -> Notification | None:
        n = self._by_id.get(notification_id)
        if n is None or (user_id is not None and n.user_id != user_id):
            return None
        return n

    async def add(self, notification: Notification) -> None:
        with self._lock:
            if notification.id in self._by_id:
                raise ValueError("notification already exists")
            self._by_id[notification.id] = notification

    async def get(self, notification_id: str) -> Notification | None:
        with self._lock:
            return self._by_id.get(notification_id)

    async def list_by_user(
        self, user_id: str, *, limit: int = 100, offset: int = 0
    ) -> list[Notification]:
        with self._lock:
            mine = [n for n in self._by_id.values() if n.user_id == user_id]
        mine.sort(key=lambda n: n.created_at, reverse=True)
        return mine[offset : offset + limit]

    async def count_unread(self, user_id: str) -> int:
        with self._lock:
            return sum(
                1 for n in self._by_id.values() if n.user_id == user_id and not n.read
            )

    async def mark_read(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None:
        with self._lock:
            n = self._owned(notification_id, user_id)
            if n is None:
                return None
            if not n.read:
                n = dataclasses.replace(n, read=True)
                self._by_id[notification_id] = n
            return n

    async def mark_all_read(self, user_id: str) -> int:
        with self._lock:
            unread = [
                n for n in self._by_id.values() if n.user_id == user_id and not n.read
            ]
            for n in unread:
                self._by_id[n.id] = dataclasses.replace(n, read=True)
            return len(unread)

    async def mark_pending_delete(
        self, notification_id: str, delete_at: int, *, user_id: str | None = None
    ) -> Notification | None:
        with self._lock:
            n = self._owned(notification_id, user_id)
            if n is None or n.pending_delete:
                return None
            n = dataclasses.replace(n, pending_delete=True, delete_at=delete_at)
            self._by_id[notification_id] = n
            return n

    async def clear_pending_delete(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None:
        with self._lock:
            n = self._owned(notification_id, user_id)
            if n is None or not n.pending_delete:
                return None
            n = dataclasses.replace(n, pending_delete=False, delete_at=None)
            self._by_id[notification_id] = n
            return n

    async def delete(self, notification_id: str, *, user_id: str | None = None) -> bool:
        with self._lock:
            if self._owned(notification_id, user_id) is None:
                return False
            del self._by_id[notification_id]
            return True

    async def delete_expired(self, now: int, *, user_id: str | None = None) -> list[str]:
        with self._lock:
            expired = [
                n.id
                for n in self._by_id.values()
                if n.is_expired(now) and (user_id is None or n.user_id == user_id)
            ]
            for notification_id in expired:
                del self._by_id[notification_id]
            return expired
