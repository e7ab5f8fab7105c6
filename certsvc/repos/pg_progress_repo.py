"""PostgreSQL implementation of ProgressSource."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from certsvc.db.engine import translate_store_errors
from certsvc.db.tables import CourseProgressRow, CourseRow, CourseWritingRow
from certsvc.models.course import CourseCompletionFact, WritingCompletionFact


class PgProgressSource:
    """Satisfies the ProgressSource Protocol by reading the collaborator's tables."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_courses_in_category(self, category: str) -> list[str]:
        stmt = select(CourseRow.id).where(CourseRow.category == category)
        with translate_store_errors("list_courses_in_category"):
            return list((await self._session.execute(stmt)).scalars().all())

    async def get_course_completion_facts(
        self, user_id: str, category: str
    ) -> list[CourseCompletionFact]:
        stmt = (
            select(CourseProgressRow.course_id, CourseProgressRow.completed)
            .join(CourseRow, CourseRow.id == CourseProgressRow.course_id)
            .where(CourseProgressRow.user_id == user_id)
            .where(CourseRow.category == category)
        )
        with translate_store_errors("get_course_completion_facts"):
            rows = (await self._session.execute(stmt)).all()
        return [
            CourseCompletionFact(user_id=user_id, course_id=r.course_id, completed=r.completed)
            for r in rows
        ]

    async def get_writing_completion_facts(
        self, user_id: str, category: str
    ) -> list[WritingCompletionFact]:
        stmt = (
            select(CourseWritingRow.course_id)
            .distinct()
            .join(CourseRow, CourseRow.id == CourseWritingRow.course_id)
            .where(CourseWritingRow.user_id == user_id)
            .where(CourseRow.category == category)
        )
        with translate_store_errors("get_writing_completion_facts"):
            course_ids = (await self._session.execute(stmt)).scalars().all()
        return [
            WritingCompletionFact(user_id=user_id, course_id=cid, submitted=True)
            for cid in course_ids
        ]

    async def get_course_title(self, course_id: str) -> str | None:
        stmt = select(CourseRow.title).where(CourseRow.id == course_id)
        with translate_store_errors("get_course_title"):
            return (await self._session.execute(stmt)).scalar_one_or_none()
