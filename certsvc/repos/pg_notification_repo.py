"""PostgreSQL implementation of NotificationRepo.

Each transition is one UPDATE/DELETE whose WHERE clause carries the
expected state.  Under READ COMMITTED a statement blocked on a row lock
re-evaluates its predicate after the other transaction commits, so a
cancel racing a sweep either restores the row or finds it gone, never
both.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from certsvc.db.engine import translate_store_errors
from certsvc.db.tables import NotificationRow
from certsvc.models.notification import Notification

_notifications = NotificationRow.__table__


class PgNotificationRepo:
    """Satisfies the NotificationRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, notification: Notification) -> None:
        row = NotificationRow(
            id=notification.id,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            related_data=dict(notification.related_data),
            read=notification.read,
            created_at=notification.created_at,
            pending_delete=notification.pending_delete,
            delete_at=notification.delete_at,
        )
        self._session.add(row)
        with translate_store_errors("add_notification"):
            await self._session.flush()

    async def get(self, notification_id: str) -> Notification | None:
        stmt = select(NotificationRow).where(NotificationRow.id == notification_id)
        with translate_store_errors("get_notification"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_notification(row)

    async def list_by_user(
        self, user_id: str, *, limit: int = 100, offset: int = 0
    ) -> list[Notification]:
        stmt = (
            select(NotificationRow)
            .where(NotificationRow.user_id == user_id)
            .order_by(NotificationRow.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        with translate_store_errors("list_notifications"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_notification(r) for r in rows]

    async def count_unread(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(_notifications)
            .where(_notifications.c.user_id == user_id)
            .where(_notifications.c.read.is_(False))
        )
        with translate_store_errors("count_unread"):
            return (await self._session.execute(stmt)).scalar_one()

    async def mark_read(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None:
        stmt = _owned(update(_notifications), notification_id, user_id)
        stmt = stmt.values(read=True).returning(*_notifications.c)
        with translate_store_errors("mark_read"):
            row = (await self._session.execute(stmt)).one_or_none()
        return _row_to_notification(row) if row is not None else None

    async def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(_notifications)
            .where(_notifications.c.user_id == user_id)
            .where(_notifications.c.read.is_(False))
            .values(read=True)
        )
        with translate_store_errors("mark_all_read"):
            result = await self._session.execute(stmt)
        return result.rowcount

    async def mark_pending_delete(
        self, notification_id: str, delete_at: int, *, user_id: str | None = None
    ) -> Notification | None:
        stmt = (
            _owned(update(_notifications), notification_id, user_id)
            .where(_notifications.c.pending_delete.is_(False))
            .values(pending_delete=True, delete_at=delete_at)
            .returning(*_notifications.c)
        )
        with translate_store_errors("mark_pending_delete"):
            row = (await self._session.execute(stmt)).one_or_none()
        return _row_to_notification(row) if row is not None else None

    async def clear_pending_delete(
        self, notification_id: str, *, user_id: str | None = None
    ) -> Notification | None:
        stmt = (
            _owned(update(_notifications), notification_id, user_id)
            .where(_notifications.c.pending_delete.is_(True))
            .values(pending_delete=False, delete_at=None)
            .returning(*_notifications.c)
        )
        with translate_store_errors("clear_pending_delete"):
            row = (await self._session.execute(stmt)).one_or_none()
        return _row_to_notification(row) if row is not None else None

    async def delete(self, notification_id: str, *, user_id: str | None = None) -> bool:
        stmt = _owned(delete(_notifications), notification_id, user_id)
        with translate_store_errors("delete_notification"):
            result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete_expired(self, now: int, *, user_id: str | None = None) -> list[str]:
        stmt = (
            delete(_notifications)
            .where(_notifications.c.pending_delete.is_(True))
            .where(_notifications.c.delete_at <= now)
        )
        if user_id is not None:
            stmt = stmt.where(_notifications.c.user_id == user_id)
        stmt = stmt.returning(_notifications.c.id)
        with translate_store_errors("delete_expired"):
            ids = (await self._session.execute(stmt)).scalars().all()
        return [str(i) for i in ids]


def _owned(stmt, notification_id: str, user_id: str | None):
    stmt = stmt.where(_notifications.c.id == notification_id)
    if user_id is not None:
        stmt = stmt.where(_notifications.c.user_id == user_id)
    return stmt


def _row_to_notification(row) -> Notification:
    return Notification(
        id=str(row.id),
        user_id=row.user_id,
        title=row.title,
        message=row.message,
        type=row.type,
        created_at=row.created_at,
        related_data=dict(row.related_data or {}),
        read=row.read,
        pending_delete=row.pending_delete,
        delete_at=row.delete_at,
    )
