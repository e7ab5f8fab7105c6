"""Collaborator-facing hooks (course creation).

The course-creation service calls these after adding a course to a
category.  check-outdated evaluates one learner synchronously;
course-added enqueues a fan-out over every certificate holder and
returns 202 immediately.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from certsvc.api.dependencies import get_services, require_any_role
from certsvc.core.errors import UnknownCategory
from certsvc.models.course import is_valid_category
from certsvc.models.principal import Principal
from certsvc.services.container import Services
from certsvc.services.task_queue import COURSE_ADDED_QUEUE, task_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/hooks/categories", tags=["hooks"])

_require_collaborator = require_any_role({"admin", "instructor"})


class CheckOutdatedIn(BaseModel):
    user_id: str


class CheckOutdatedOut(BaseModel):
    user_id: str
    category: str
    is_outdated: bool


class CourseAddedIn(BaseModel):
    course_id: str | None = None


class TaskAcceptedOut(BaseModel):
    task_id: str
    queue: str


@router.post("/{category}/check-outdated", response_model=CheckOutdatedOut)
async def check_outdated(
    category: str,
    payload: CheckOutdatedIn,
    _principal: Annotated[Principal, Depends(_require_collaborator)],
    services: Annotated[Services, Depends(get_services)],
) -> CheckOutdatedOut:
    outdated = await services.certificates.check_outdated(payload.user_id, category)
    return CheckOutdatedOut(
        user_id=payload.user_id, category=category, is_outdated=outdated
    )


@router.post(
    "/{category}/course-added",
    response_model=TaskAcceptedOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def course_added(
    category: str,
    payload: CourseAddedIn,
    principal: Annotated[Principal, Depends(_require_collaborator)],
) -> TaskAcceptedOut:
    if not is_valid_category(category):
        raise UnknownCategory(f"unknown category {category!r}")
    task = await task_queue.enqueue(
        COURSE_ADDED_QUEUE, {"category": category, "course_id": payload.course_id}
    )
    logger.info(
        "Enqueued outdated fan-out task=%s category=%s by user=%s",
        task.id,
        category,
        principal.user_id,
        extra={"category": category},
    )
    return TaskAcceptedOut(task_id=task.id, queue=task.queue)
