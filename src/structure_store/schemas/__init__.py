"""Structure store schemas."""

from src.structure_store.schemas.structure import (
    ClipSnapshot,
    LessonSnapshot,
    NewLesson,
    NewSection,
    SectionSnapshot,
    SectionWithLessons,
    VersionSnapshot,
    VideoSnapshot,
)

__all__ = [
    "ClipSnapshot",
    "LessonSnapshot",
    "NewLesson",
    "NewSection",
    "SectionSnapshot",
    "SectionWithLessons",
    "VersionSnapshot",
    "VideoSnapshot",
]
