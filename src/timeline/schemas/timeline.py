"""Schemas for the clip timeline of a video."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field

from src.common.base_course_model import BaseCourseModel
from src.mongodb.schemas import ClipDocument, ClipSectionDocument, VideoDocument


class ReorderDirection(StrEnum):
    """Direction to move a timeline item."""

    UP = "up"
    DOWN = "down"


class RelativePosition(StrEnum):
    """Where to place a new clip section relative to a target item."""

    BEFORE = "before"
    AFTER = "after"


class TimelineItemType(StrEnum):
    """The two kinds of item that share a video's ordering space."""

    CLIP = "clip"
    CLIP_SECTION = "clip-section"


class StartInsertionPoint(BaseCourseModel):
    """Insert before every existing item."""

    type: Literal["start"] = "start"


class AfterClipInsertionPoint(BaseCourseModel):
    """Insert directly after a clip of the same video."""

    type: Literal["after-clip"] = "after-clip"
    clip_id: str


InsertionPoint = Annotated[
    StartInsertionPoint | AfterClipInsertionPoint,
    Field(discriminator="type"),
]


class NewClip(BaseCourseModel):
    """A captured span of footage to append to a timeline."""

    input_video: str
    start_time: float = Field(ge=0)
    end_time: float = Field(ge=0)
    beat_type: str = "none"


class ClipUpdate(BaseCourseModel):
    """Partial update of a clip; unset fields are left alone."""

    text: str | None = None
    transcribed_at: datetime | None = None
    beat_type: str | None = None
    scene: str | None = None
    profile: str | None = None


class TimelineClip(BaseCourseModel):
    """A clip as it appears on the timeline."""

    item_type: Literal[TimelineItemType.CLIP] = TimelineItemType.CLIP
    clip: ClipDocument

    # Derived from order: the nearest clip section before this clip, if any
    clip_section_id: str | None = None


class TimelineClipSection(BaseCourseModel):
    """A clip section marker as it appears on the timeline."""

    item_type: Literal[TimelineItemType.CLIP_SECTION] = TimelineItemType.CLIP_SECTION
    clip_section: ClipSectionDocument


TimelineItem = Annotated[
    TimelineClip | TimelineClipSection,
    Field(discriminator="item_type"),
]


class VideoTimeline(BaseCourseModel):
    """A video with its clips and clip sections merged in timeline order."""

    video: VideoDocument
    items: list[TimelineItem]

    @property
    def clips(self) -> list[ClipDocument]:
        return [item.clip for item in self.items if isinstance(item, TimelineClip)]

    @property
    def clip_sections(self) -> list[ClipSectionDocument]:
        return [
            item.clip_section
            for item in self.items
            if isinstance(item, TimelineClipSection)
        ]
