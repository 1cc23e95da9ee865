"""MongoDB document schemas for course entities."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator
from pydantic_mongo import PydanticObjectId


def _now() -> datetime:
    return datetime.now(UTC)


class RepoDocument(BaseModel):
    """A tracked content source (e.g. a course repository on disk)."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")

    # Not unique: several repos may point at the same directory.
    file_path: str
    name: str
    archived: bool = False

    created_at: datetime = Field(default_factory=_now)

    class Config:
        populate_by_name = True


class RepoVersionDocument(BaseModel):
    """One snapshot in a repo's linear version history."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")
    repo_id: str
    name: str

    # Strictly increasing per repo; breaks created_at ties.
    sequence: int = 0

    created_at: datetime = Field(default_factory=_now)

    class Config:
        populate_by_name = True


class SectionDocument(BaseModel):
    """A course section inside a repo version."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")
    repo_version_id: str
    title: str
    order: float

    # Link to the section this one was copied from (changelog tracking)
    previous_version_section_id: str | None = None

    created_at: datetime = Field(default_factory=_now)

    class Config:
        populate_by_name = True


class LessonDocument(BaseModel):
    """A lesson inside a section; `path` starts with its lesson number."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")
    section_id: str
    path: str
    lesson_number: float

    previous_version_lesson_id: str | None = None

    created_at: datetime = Field(default_factory=_now)

    class Config:
        populate_by_name = True


class VideoDocument(BaseModel):
    """A recorded video, either attached to a lesson or standalone."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")

    # None marks a standalone video
    lesson_id: str | None = None
    path: str
    original_footage_path: str = ""
    archived: bool = False

    previous_version_video_id: str | None = None

    created_at: datetime = Field(default_factory=_now)

    @property
    def is_standalone(self) -> bool:
        return self.lesson_id is None

    class Config:
        populate_by_name = True


class ClipSectionDocument(BaseModel):
    """A named marker in a video's timeline grouping the clips that follow it."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")
    video_id: str
    name: str

    # Shares the ordering space with the video's clips
    order: str
    archived: bool = False

    created_at: datetime = Field(default_factory=_now)

    class Config:
        populate_by_name = True


class ClipDocument(BaseModel):
    """A span of source footage placed on a video's timeline."""

    id: PydanticObjectId | None = Field(default=None, alias="_id")
    video_id: str
    video_filename: str
    source_start_time: float
    source_end_time: float

    order: str
    archived: bool = False

    # Transcription
    text: str = ""
    transcribed_at: datetime | None = None

    # Render treatment hints consumed by the rendering tool
    beat_type: str = "none"
    scene: str | None = None
    profile: str | None = None

    created_at: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def _check_range(self) -> "ClipDocument":
        if self.source_end_time <= self.source_start_time:
            msg = "source_end_time must be greater than source_start_time"
            raise ValueError(msg)
        return self

    @property
    def duration_seconds(self) -> float:
        return self.source_end_time - self.source_start_time

    class Config:
        populate_by_name = True
