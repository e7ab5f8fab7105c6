"""Category completion: has a learner finished every course and writing?

Pure read/aggregate over the progress collaborator's facts.  Nothing is
cached or persisted; each call recomputes from source.
"""

from __future__ import annotations

import logging

from certsvc.core.errors import UnknownCategory
from certsvc.models.course import CategorySnapshot, is_valid_category
from certsvc.repos.progress_repo import ProgressSource

logger = logging.getLogger(__name__)


class CompletionTracker:
    def __init__(self, progress: ProgressSource) -> None:
        self._progress = progress

    async def snapshot(self, user_id: str, category: str) -> CategorySnapshot:
        snapshot, _ = await self.evaluate(user_id, category)
        return snapshot

    def require_known(self, category: str) -> None:
        if not is_valid_category(category):
            raise UnknownCategory(f"unknown category {category!r}")

    async def course_ids(self, category: str) -> frozenset[str]:
        """Full current course-id set of a category."""
        self.require_known(category)
        return frozenset(await self._progress.list_courses_in_category(category))

    async def evaluate(
        self, user_id: str, category: str
    ) -> tuple[CategorySnapshot, frozenset[str]]:
        """Snapshot plus the exact course set it was computed against.

        Certificate issuance needs both from the same read, otherwise a
        course added between two reads would be recorded as completed.
        """
        course_ids = await self.course_ids(category)
        if not course_ids:
            return CategorySnapshot(category=category), course_ids

        course_facts = await self._progress.get_course_completion_facts(
            user_id, category
        )
        writing_facts = await self._progress.get_writing_completion_facts(
            user_id, category
        )

        # Sets: duplicate facts and facts for courses outside the category never count.
        completed = {
            f.course_id
            for f in course_facts
            if f.completed and f.user_id == user_id and f.course_id in course_ids
        }
        written = {
            f.course_id
            for f in writing_facts
            if f.submitted and f.user_id == user_id and f.course_id in course_ids
        }

        snapshot = CategorySnapshot(
            category=category,
            total_courses=len(course_ids),
            completed_courses=len(completed),
            completed_writings=len(written),
        )
        logger.debug(
            "Snapshot user=%s category=%s courses=%d/%d writings=%d/%d",
            user_id,
            category,
            snapshot.completed_courses,
            snapshot.total_courses,
            snapshot.completed_writings,
            snapshot.total_courses,
        )
        return snapshot, course_ids

    async def course_title(self, course_id: str) -> str:
        return await self._progress.get_course_title(course_id) or course_id
