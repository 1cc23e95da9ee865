"""Changelog entries derived from consecutive version snapshots."""

from datetime import datetime

from pydantic import Field

from src.common.base_course_model import BaseCourseModel


class LessonRef(BaseCourseModel):
    section_path: str
    lesson_path: str


class Rename(BaseCourseModel):
    old_path: str
    new_path: str


class LessonRename(BaseCourseModel):
    section_path: str
    old_path: str
    new_path: str


class VersionChanges(BaseCourseModel):
    """What changed in a version relative to the one before it."""

    new_lessons: list[LessonRef] = Field(default_factory=list)
    renamed_sections: list[Rename] = Field(default_factory=list)
    renamed_lessons: list[LessonRename] = Field(default_factory=list)
    content_changes: list[LessonRef] = Field(default_factory=list)
    deleted_sections: list[str] = Field(default_factory=list)
    deleted_lessons: list[LessonRef] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.new_lessons
            or self.renamed_sections
            or self.renamed_lessons
            or self.content_changes
            or self.deleted_sections
            or self.deleted_lessons
        )


class ChangelogEntry(BaseCourseModel):
    """One version's entry; `changes` is None for the first version."""

    version_id: str
    version_name: str
    created_at: datetime
    changes: VersionChanges | None = None
    lines: list[str] = Field(default_factory=list)

    @property
    def is_initial(self) -> bool:
        return self.changes is None
