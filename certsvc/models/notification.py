from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import uuid4

from certsvc.core.errors import InvalidPayload

NotificationType = Literal[
    "course_added", "certificate_issued", "certificate_updated", "generic"
]

# related_data keys each type must carry; "generic" is free-form.
REQUIRED_RELATED_KEYS: dict[str, tuple[str, ...]] = {
    "course_added": ("category", "course_id", "course_title"),
    "certificate_issued": ("category",),
    "certificate_updated": ("category",),
    "generic": (),
}

# Fixed grace window between a delete request and the sweep removing the record.
DELETION_GRACE_SECONDS = 60 * 60


def validate_related_data(type: str, related_data: Mapping[str, Any] | None) -> dict:
    if type not in REQUIRED_RELATED_KEYS:
        raise InvalidPayload(
            f"unknown notification type {type!r}; "
            f"expected one of {sorted(REQUIRED_RELATED_KEYS)}"
        )
    data = dict(related_data or {})
    missing = [k for k in REQUIRED_RELATED_KEYS[type] if k not in data]
    if missing:
        raise InvalidPayload(f"related_data for {type} is missing {missing}")
    return data


@dataclass(frozen=True, slots=True)
class Notification:
    """In-app notification with a deferred-deletion lifecycle.

    States:
      active          pending_delete=False, delete_at=None
      pending_delete  pending_delete=True,  delete_at=<deadline>
      deleted         the record no longer exists
    """

    id: str
    user_id: str
    title: str
    message: str
    type: str  # course_added|certificate_issued|certificate_updated|generic
    created_at: int
    related_data: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    pending_delete: bool = False
    delete_at: int | None = None

    @staticmethod
    def new(
        *,
        user_id: str,
        title: str,
        message: str,
        type: str,
        created_at: int,
        related_data: Mapping[str, Any] | None = None,
    ) -> Notification:
        return Notification(
            id=str(uuid4()),
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            created_at=created_at,
            related_data=validate_related_data(type, related_data),
        )

    @property
    def state(self) -> str:
        return "pending_delete" if self.pending_delete else "active"

    def is_expired(self, now: int) -> bool:
        return (
            self.pending_delete and self.delete_at is not None and self.delete_at <= now
        )
