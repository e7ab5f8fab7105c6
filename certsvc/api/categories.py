from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from certsvc.api.dependencies import get_services, require_user
from certsvc.models.course import COURSE_CATEGORIES, category_title
from certsvc.models.principal import Principal
from certsvc.services.container import Services

router = APIRouter(prefix="/v1/categories", tags=["categories"])


class CategoryOut(BaseModel):
    id: str
    title: str
    description: str


class SnapshotOut(BaseModel):
    category: str
    title: str
    total_courses: int
    completed_courses: int
    completed_writings: int
    progress_percent: int
    writing_percent: int
    is_all_completed: bool


@router.get("", response_model=list[CategoryOut])
def list_categories(
    _principal: Annotated[Principal, Depends(require_user)],
) -> list[CategoryOut]:
    return [
        CategoryOut(id=c.id, title=c.title, description=c.description)
        for c in COURSE_CATEGORIES.values()
    ]


@router.get("/{category}/snapshot", response_model=SnapshotOut)
async def get_snapshot(
    category: str,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> SnapshotOut:
    """The caller's progress through one category, recomputed on every call."""
    snap = await services.tracker.snapshot(principal.user_id, category)
    return SnapshotOut(
        category=snap.category,
        title=category_title(snap.category),
        total_courses=snap.total_courses,
        completed_courses=snap.completed_courses,
        completed_writings=snap.completed_writings,
        progress_percent=snap.progress_percent,
        writing_percent=snap.writing_percent,
        is_all_completed=snap.is_all_completed,
    )
