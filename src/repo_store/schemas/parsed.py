"""Sections and lessons discovered in a repo directory."""

from pydantic import Field

from src.common.base_course_model import BaseCourseModel


class ParsedLesson(BaseCourseModel):
    """A lesson directory, e.g. "02-variables"."""

    path: str
    lesson_number: float


class ParsedSection(BaseCourseModel):
    """A section directory with its lessons sorted by lesson number."""

    path: str
    section_number: float
    lessons: list[ParsedLesson] = Field(default_factory=list)
