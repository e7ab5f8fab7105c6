from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Certificate:
    """Completion certificate for one (user, category) pair.

    ``completed_course_ids`` is the category's course set at the time of
    the last issue or refresh.  The certificate is outdated once the
    category contains a course outside that set.
    """

    id: str
    user_id: str
    category: str
    issued_at: int
    completed_course_ids: frozenset[str]
    updated_at: int | None = None
    is_outdated: bool = False

    @staticmethod
    def new(
        *,
        user_id: str,
        category: str,
        issued_at: int,
        completed_course_ids: frozenset[str],
    ) -> Certificate:
        return Certificate(
            id=str(uuid4()),
            user_id=user_id,
            category=category,
            issued_at=issued_at,
            completed_course_ids=completed_course_ids,
        )

    def missing_courses(self, current_course_ids: frozenset[str]) -> frozenset[str]:
        """Courses in the category that this certificate was not issued against."""
        return current_course_ids - self.completed_course_ids

    def covers(self, current_course_ids: frozenset[str]) -> bool:
        return current_course_ids <= self.completed_course_ids
