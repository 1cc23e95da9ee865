"""Timeline schemas."""

from src.timeline.schemas.timeline import (
    AfterClipInsertionPoint,
    ClipUpdate,
    InsertionPoint,
    NewClip,
    RelativePosition,
    ReorderDirection,
    StartInsertionPoint,
    TimelineClip,
    TimelineClipSection,
    TimelineItem,
    TimelineItemType,
    VideoTimeline,
)

__all__ = [
    "AfterClipInsertionPoint",
    "ClipUpdate",
    "InsertionPoint",
    "NewClip",
    "RelativePosition",
    "ReorderDirection",
    "StartInsertionPoint",
    "TimelineClip",
    "TimelineClipSection",
    "TimelineItem",
    "TimelineItemType",
    "VideoTimeline",
]
