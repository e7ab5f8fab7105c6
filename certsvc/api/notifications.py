from __future__ import annotations

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from certsvc.api.dependencies import get_services, require_user
from certsvc.models.notification import Notification
from certsvc.models.principal import Principal
from certsvc.services.container import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: str
    related_data: dict[str, Any]
    read: bool
    created_at: int
    pending_delete: bool
    delete_at: int | None
    remaining_seconds: int | None


class UnreadCountOut(BaseModel):
    count: int


class ReadAllOut(BaseModel):
    updated: int


def to_out(services: Services, n: Notification) -> NotificationOut:
    remaining = services.notifications.remaining_time(n)
    return NotificationOut(
        id=n.id,
        title=n.title,
        message=n.message,
        type=n.type,
        related_data=n.related_data,
        read=n.read,
        created_at=n.created_at,
        pending_delete=n.pending_delete,
        delete_at=n.delete_at,
        remaining_seconds=int(remaining.total_seconds()) if remaining is not None else None,
    )


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[NotificationOut]:
    """Newest first.  Expired pending deletions of this user are swept first."""
    await services.scheduler.sweep(user_id=principal.user_id)
    items = await services.notifications.list_notifications(
        principal.user_id, limit=limit, offset=offset
    )
    return [to_out(services, n) for n in items]


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> UnreadCountOut:
    return UnreadCountOut(count=await services.notifications.unread_count(principal.user_id))


@router.post("/read-all", response_model=ReadAllOut)
async def mark_all_read(
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> ReadAllOut:
    return ReadAllOut(updated=await services.notifications.mark_all_read(principal.user_id))


@router.get("/{notification_id}", response_model=NotificationOut)
async def get_notification(
    notification_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> NotificationOut:
    n = await services.notifications.get(str(notification_id), user_id=principal.user_id)
    return to_out(services, n)


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> NotificationOut:
    n = await services.notifications.mark_read(
        str(notification_id), user_id=principal.user_id
    )
    return to_out(services, n)


@router.post("/{notification_id}/delete-request", response_model=NotificationOut)
async def request_deletion(
    notification_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> NotificationOut:
    """Schedule deletion after the grace window; cancellable until then."""
    n = await services.notifications.mark_for_deletion(
        str(notification_id), user_id=principal.user_id
    )
    return to_out(services, n)


@router.delete("/{notification_id}/delete-request", response_model=NotificationOut)
async def cancel_deletion(
    notification_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> NotificationOut:
    n = await services.notifications.cancel_deletion(
        str(notification_id), user_id=principal.user_id
    )
    return to_out(services, n)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_now(
    notification_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> Response:
    await services.notifications.delete(str(notification_id), user_id=principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
