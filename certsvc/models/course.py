from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    title: str
    description: str = ""


# Known categories.  New tracks are added here.
COURSE_CATEGORIES: dict[str, Category] = {
    "reading": Category(
        id="reading",
        title="Reading",
        description="Why reading matters and how to read well",
    ),
    "writing": Category(
        id="writing",
        title="Writing",
        description="Getting started with writing and why it matters",
    ),
    "question": Category(
        id="question",
        title="Questioning",
        description="The skill and importance of asking good questions",
    ),
}


def is_valid_category(category: str) -> bool:
    return category in COURSE_CATEGORIES


def category_title(category: str) -> str:
    known = COURSE_CATEGORIES.get(category)
    return known.title if known is not None else category


@dataclass(frozen=True, slots=True)
class CourseCompletionFact:
    """Owned by the learning-progress collaborator; read-only here."""

    user_id: str
    course_id: str
    completed: bool


@dataclass(frozen=True, slots=True)
class WritingCompletionFact:
    user_id: str
    course_id: str
    submitted: bool


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    """Derived on demand from completion facts; never persisted."""

    category: str
    total_courses: int = 0
    completed_courses: int = 0
    completed_writings: int = 0

    @property
    def is_all_completed(self) -> bool:
        return (
            self.total_courses > 0
            and self.completed_courses == self.total_courses
            and self.completed_writings == self.total_courses
        )

    @property
    def progress_percent(self) -> int:
        if self.total_courses == 0:
            return 0
        return round(self.completed_courses / self.total_courses * 100)

    @property
    def writing_percent(self) -> int:
        if self.total_courses == 0:
            return 0
        return round(self.completed_writings / self.total_courses * 100)
