"""Changelog schemas."""

from src.changelog.schemas.changes import (
    ChangelogEntry,
    LessonRef,
    LessonRename,
    Rename,
    VersionChanges,
)

__all__ = [
    "ChangelogEntry",
    "LessonRef",
    "LessonRename",
    "Rename",
    "VersionChanges",
]
