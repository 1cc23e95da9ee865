"""Schemas for the section/lesson structure of a repo version."""

from datetime import datetime

from pydantic import Field

from src.common.base_course_model import BaseCourseModel
from src.mongodb.schemas import LessonDocument, SectionDocument


class NewSection(BaseCourseModel):
    """A section to create.

    Without an explicit `order` the section is ordered by its position in the
    input list.
    """

    title: str = Field(min_length=1)
    order: float | None = None


class NewLesson(BaseCourseModel):
    """A lesson to create; the lesson number is parsed from `path`."""

    path: str = Field(min_length=1)


class SectionWithLessons(BaseCourseModel):
    """A section and its lessons ordered by lesson number."""

    section: SectionDocument
    lessons: list[LessonDocument]


# Snapshots consumed by the changelog


class ClipSnapshot(BaseCourseModel):
    id: str
    text: str


class VideoSnapshot(BaseCourseModel):
    id: str
    path: str
    clips: list[ClipSnapshot]


class LessonSnapshot(BaseCourseModel):
    id: str
    path: str
    lesson_number: float
    previous_version_lesson_id: str | None = None
    videos: list[VideoSnapshot] = []

    @property
    def transcript(self) -> str:
        """All clip texts of the lesson, space-joined."""
        return " ".join(
            clip.text for video in self.videos for clip in video.clips
        ).strip()


class SectionSnapshot(BaseCourseModel):
    id: str
    title: str
    order: float
    previous_version_section_id: str | None = None
    lessons: list[LessonSnapshot] = []


class VersionSnapshot(BaseCourseModel):
    """The full structure of one version at read time."""

    id: str
    repo_id: str
    name: str
    created_at: datetime
    sequence: int = 0
    sections: list[SectionSnapshot] = []
