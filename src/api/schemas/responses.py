"""API response schemas."""

from datetime import datetime
from typing import Literal

from src.changelog.schemas import ChangelogEntry
from src.common.base_course_model import BaseCourseModel
from src.mongodb.schemas import (
    ClipDocument,
    ClipSectionDocument,
    LessonDocument,
    RepoDocument,
    RepoVersionDocument,
    SectionDocument,
    VideoDocument,
)
from src.structure_store.schemas import SectionWithLessons
from src.timeline.schemas import TimelineClip, VideoTimeline


class RepoResponse(BaseCourseModel):
    id: str
    name: str
    file_path: str
    archived: bool
    created_at: datetime

    @classmethod
    def from_document(cls, doc: RepoDocument) -> "RepoResponse":
        return cls(
            id=str(doc.id),
            name=doc.name,
            file_path=doc.file_path,
            archived=doc.archived,
            created_at=doc.created_at,
        )


class VersionResponse(BaseCourseModel):
    id: str
    repo_id: str
    name: str
    created_at: datetime

    @classmethod
    def from_document(cls, doc: RepoVersionDocument) -> "VersionResponse":
        return cls(id=str(doc.id), repo_id=doc.repo_id, name=doc.name, created_at=doc.created_at)


class LessonResponse(BaseCourseModel):
    id: str
    section_id: str
    path: str
    lesson_number: float

    @classmethod
    def from_document(cls, doc: LessonDocument) -> "LessonResponse":
        return cls(
            id=str(doc.id),
            section_id=doc.section_id,
            path=doc.path,
            lesson_number=doc.lesson_number,
        )


class SectionResponse(BaseCourseModel):
    id: str
    repo_version_id: str
    title: str
    order: float
    lessons: list[LessonResponse] = []

    @classmethod
    def from_document(
        cls,
        doc: SectionDocument,
        lessons: list[LessonDocument] | None = None,
    ) -> "SectionResponse":
        return cls(
            id=str(doc.id),
            repo_version_id=doc.repo_version_id,
            title=doc.title,
            order=doc.order,
            lessons=[LessonResponse.from_document(lesson) for lesson in lessons or []],
        )

    @classmethod
    def from_structure(cls, item: SectionWithLessons) -> "SectionResponse":
        return cls.from_document(item.section, item.lessons)


class VideoResponse(BaseCourseModel):
    id: str
    lesson_id: str | None
    path: str
    original_footage_path: str
    archived: bool
    created_at: datetime

    @classmethod
    def from_document(cls, doc: VideoDocument) -> "VideoResponse":
        return cls(
            id=str(doc.id),
            lesson_id=doc.lesson_id,
            path=doc.path,
            original_footage_path=doc.original_footage_path,
            archived=doc.archived,
            created_at=doc.created_at,
        )


class ClipSectionResponse(BaseCourseModel):
    type: Literal["clip-section"] = "clip-section"
    id: str
    video_id: str
    name: str
    order: str
    archived: bool

    @classmethod
    def from_document(cls, doc: ClipSectionDocument) -> "ClipSectionResponse":
        return cls(
            id=str(doc.id),
            video_id=doc.video_id,
            name=doc.name,
            order=doc.order,
            archived=doc.archived,
        )


class ClipResponse(BaseCourseModel):
    type: Literal["clip"] = "clip"
    id: str
    video_id: str
    clip_section_id: str | None = None
    video_filename: str
    source_start_time: float
    source_end_time: float
    order: str
    archived: bool
    beat_type: str
    text: str
    transcribed_at: datetime | None
    scene: str | None
    profile: str | None

    @classmethod
    def from_document(
        cls,
        doc: ClipDocument,
        clip_section_id: str | None = None,
    ) -> "ClipResponse":
        return cls(
            id=str(doc.id),
            video_id=doc.video_id,
            clip_section_id=clip_section_id,
            video_filename=doc.video_filename,
            source_start_time=doc.source_start_time,
            source_end_time=doc.source_end_time,
            order=doc.order,
            archived=doc.archived,
            beat_type=doc.beat_type,
            text=doc.text,
            transcribed_at=doc.transcribed_at,
            scene=doc.scene,
            profile=doc.profile,
        )


class TimelineResponse(BaseCourseModel):
    """A video and its timeline items in order."""

    video: VideoResponse
    items: list[ClipResponse | ClipSectionResponse]

    @classmethod
    def from_timeline(cls, timeline: VideoTimeline) -> "TimelineResponse":
        return cls(
            video=VideoResponse.from_document(timeline.video),
            items=[
                ClipResponse.from_document(item.clip, item.clip_section_id)
                if isinstance(item, TimelineClip)
                else ClipSectionResponse.from_document(item.clip_section)
                for item in timeline.items
            ],
        )


class ChangelogResponse(BaseCourseModel):
    """Changelog entries oldest first, plus the rendered Markdown."""

    entries: list[ChangelogEntry]
    markdown: str


class FirstFrameResponse(BaseCourseModel):
    image_path: str
