"""API request schemas."""

import re

from pydantic import Field, field_validator

from src.common.base_course_model import BaseCourseModel
from src.common.ordering import validate_order_key
from src.structure_store.schemas import NewLesson, NewSection
from src.timeline.schemas import (
    InsertionPoint,
    NewClip,
    RelativePosition,
    ReorderDirection,
    TimelineItemType,
)

_UNSAFE_PATH_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class AddRepoRequest(BaseCourseModel):
    """Request to add a repo from a directory on disk."""

    file_path: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)


class RenameRequest(BaseCourseModel):
    name: str = Field(min_length=1, max_length=200)


class ArchiveRequest(BaseCourseModel):
    archived: bool


class UpdateRepoFilePathRequest(BaseCourseModel):
    file_path: str = Field(min_length=1)


class CopyVersionRequest(BaseCourseModel):
    """Request to branch a new version off the latest one."""

    source_version_id: str
    name: str = Field(min_length=1, max_length=200)


class CreateSectionsRequest(BaseCourseModel):
    sections: list[NewSection]


class CreateLessonsRequest(BaseCourseModel):
    lessons: list[NewLesson]


class UpdateLessonRequest(BaseCourseModel):
    """Request to rename a lesson, optionally moving it."""

    path: str
    section_id: str | None = None
    lesson_number: float | None = None

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Lesson path must not be empty"
            raise ValueError(msg)
        if _UNSAFE_PATH_CHARS.search(value):
            msg = "Lesson path contains characters that are not allowed in file names"
            raise ValueError(msg)
        return value


class CreateVideoRequest(BaseCourseModel):
    """Create a video; without `lesson_id` the video is standalone."""

    path: str = Field(min_length=1)
    lesson_id: str | None = None
    original_footage_path: str = ""


class RenameVideoRequest(BaseCourseModel):
    path: str = Field(min_length=1)


class CreateClipSectionRequest(BaseCourseModel):
    name: str = Field(min_length=1)
    order: str

    @field_validator("order")
    @classmethod
    def _check_order(cls, value: str) -> str:
        validate_order_key(value)
        return value


class InsertClipSectionRequest(BaseCourseModel):
    name: str = Field(min_length=1)
    insertion_point: InsertionPoint


class PlaceClipSectionRequest(BaseCourseModel):
    name: str = Field(min_length=1)
    position: RelativePosition
    target_id: str
    target_type: TimelineItemType


class ReorderRequest(BaseCourseModel):
    direction: ReorderDirection


class AppendClipsRequest(BaseCourseModel):
    clips: list[NewClip]
    insertion_point: InsertionPoint | None = None


class UpdateClipRequest(BaseCourseModel):
    text: str | None = None
    beat_type: str | None = None
    scene: str | None = None
    profile: str | None = None


class ExportVideoRequest(BaseCourseModel):
    shorts_directory_output_name: str | None = None


class TranscribeClipsRequest(BaseCourseModel):
    clip_ids: list[str]


class AppendFromObsRequest(BaseCourseModel):
    file_path: str | None = None
    insert_after_clip_id: str | None = None
