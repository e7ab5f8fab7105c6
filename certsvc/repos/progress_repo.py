from __future__ import annotations

import threading
from typing import Protocol

from certsvc.models.course import CourseCompletionFact, WritingCompletionFact


class ProgressSource(Protocol):
    """Read-only view of the learning-progress collaborator's records."""

    async def list_courses_in_category(self, category: str) -> list[str]: ...
    async def get_course_completion_facts(
        self, user_id: str, category: str
    ) -> list[CourseCompletionFact]: ...
    async def get_writing_completion_facts(
        self, user_id: str, category: str
    ) -> list[WritingCompletionFact]: ...
    async def get_course_title(self, course_id: str) -> str | None: ...


class InMemoryProgressSource:
    """Stands in for the collaborator's tables in dev and tests.

    The add_/record_ helpers play the collaborator's role; the service
    itself only calls the three read methods.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._courses: dict[str, tuple[str, str]] = {}  # course_id -> (category, title)
        self._completions: dict[tuple[str, str], bool] = {}
        self._writings: dict[tuple[str, str], bool] = {}

    # --- collaborator side ---

    def add_course(self, course_id: str, category: str, title: str = "") -> None:
        with self._lock:
            self._courses[course_id] = (category, title or course_id)

    def remove_course(self, course_id: str) -> None:
        with self._lock:
            self._courses.pop(course_id, None)

    def record_course_completion(
        self, user_id: str, course_id: str, completed: bool = True
    ) -> None:
        with self._lock:
            self._completions[(user_id, course_id)] = completed

    def record_writing(
        self, user_id: str, course_id: str, submitted: bool = True
    ) -> None:
        with self._lock:
            self._writings[(user_id, course_id)] = submitted

    def clear(self) -> None:
        with self._lock:
            self._courses.clear()
            self._completions.clear()
            self._writings.clear()

    # --- ProgressSource ---

    async def list_courses_in_category(self, category: str) -> list[str]:
        with self._lock:
            return [cid for cid, (cat, _) in self._courses.items() if cat == category]

    async def get_course_completion_facts(
        self, user_id: str, category: str
    ) -> list[CourseCompletionFact]:
        with self._lock:
            return [
                CourseCompletionFact(user_id=uid, course_id=cid, completed=done)
                for (uid, cid), done in self._completions.items()
                if uid == user_id and self._in_category(cid, category)
            ]

    async def get_writing_completion_facts(
        self, user_id: str, category: str
    ) -> list[WritingCompletionFact]:
        with self._lock:
            return [
                WritingCompletionFact(user_id=uid, course_id=cid, submitted=done)
                for (uid, cid), done in self._writings.items()
                if uid == user_id and self._in_category(cid, category)
            ]

    async def get_course_title(self, course_id: str) -> str | None:
        with self._lock:
            course = self._courses.get(course_id)
        return course[1] if course is not None else None

    def _in_category(self, course_id: str, category: str) -> bool:
        course = self._courses.get(course_id)
        return course is not None and course[0] == category
