from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from certsvc.api.dependencies import get_services, require_role
from certsvc.api.notifications import NotificationOut, to_out
from certsvc.models.principal import Principal
from certsvc.services.container import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


class SweepOut(BaseModel):
    deleted: int


class NotificationCreateIn(BaseModel):
    user_id: str
    title: str = Field(min_length=1)
    message: str
    type: str = "generic"
    related_data: dict[str, Any] = Field(default_factory=dict)


@router.post("/notifications/sweep", response_model=SweepOut)
async def sweep_now(
    principal: Annotated[Principal, Depends(require_role("admin"))],
    services: Annotated[Services, Depends(get_services)],
) -> SweepOut:
    deleted = await services.scheduler.sweep()
    logger.info("Admin sweep by user=%s removed %d", principal.user_id, deleted)
    return SweepOut(deleted=deleted)


@router.post(
    "/notifications",
    response_model=NotificationOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_notification(
    payload: NotificationCreateIn,
    principal: Annotated[Principal, Depends(require_role("admin"))],
    services: Annotated[Services, Depends(get_services)],
) -> NotificationOut:
    """Send a notification to a learner; related_data is checked against type."""
    n = await services.notifications.create(
        user_id=payload.user_id,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        related_data=payload.related_data,
    )
    logger.info(
        "Admin user=%s created notification id=%s for user=%s",
        principal.user_id,
        n.id,
        payload.user_id,
    )
    return to_out(services, n)
