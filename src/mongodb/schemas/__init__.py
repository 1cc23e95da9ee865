"""MongoDB document schemas."""

from src.mongodb.schemas.documents import (
    ClipDocument,
    ClipSectionDocument,
    LessonDocument,
    RepoDocument,
    RepoVersionDocument,
    SectionDocument,
    VideoDocument,
)

__all__ = [
    "ClipDocument",
    "ClipSectionDocument",
    "LessonDocument",
    "RepoDocument",
    "RepoVersionDocument",
    "SectionDocument",
    "VideoDocument",
]
