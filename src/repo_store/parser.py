"""Discover sections and lessons in a course repo directory.

A lesson is the deepest path segment whose leading "-" token is a number
("03-loops"); its section is the segment right above it, which must be
numbered too ("01-basics/03-loops"). Unnumbered files and folders below a
lesson collapse onto it.
"""

import logging
import math
import os
from pathlib import Path
from typing import Protocol

from src.common.errors import RepoPathDoesNotExistError
from src.repo_store.schemas import ParsedLesson, ParsedSection

logger = logging.getLogger(__name__)


class RepoParser(Protocol):
    """Turns a repo path into its section/lesson structure."""

    def parse_repo(self, path: str) -> list[ParsedSection]: ...


def _segment_number(segment: str) -> float | None:
    token = segment.split("-")[0]
    try:
        number = float(token)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def section_and_lesson_from_path(
    relative_path: str,
) -> tuple[ParsedSection, ParsedLesson] | None:
    """Locate the section and lesson a relative path belongs to.

    Returns:
        (section, lesson) without lessons attached to the section, or None
        when the path is not inside a numbered section/lesson pair.
    """
    segments = Path(relative_path).parts
    lesson_index = next(
        (i for i in range(len(segments) - 1, -1, -1) if _segment_number(segments[i]) is not None),
        None,
    )
    if lesson_index is None or lesson_index == 0:
        return None

    section_segment = segments[lesson_index - 1]
    section_number = _segment_number(section_segment)
    if section_number is None:
        return None

    lesson_segment = segments[lesson_index]
    lesson_number = _segment_number(lesson_segment)
    assert lesson_number is not None
    return (
        ParsedSection(path=section_segment, section_number=section_number),
        ParsedLesson(path=lesson_segment, lesson_number=lesson_number),
    )


class DirectoryRepoParser:
    """RepoParser that walks a directory tree on the local disk."""

    def parse_repo(self, path: str) -> list[ParsedSection]:
        """Walk `path` recursively and group lessons into sections.

        Duplicate (section number, lesson number) pairs keep the last path
        seen. Sections are sorted by section number, lessons by lesson number.

        Raises:
            RepoPathDoesNotExistError: If `path` is not a directory.
        """
        root = Path(path)
        if not root.is_dir():
            raise RepoPathDoesNotExistError(path)

        found: dict[tuple[float, float], tuple[ParsedSection, ParsedLesson]] = {}
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in [*dirnames, *sorted(filenames)]:
                relative = os.path.relpath(os.path.join(dirpath, name), root)
                match = section_and_lesson_from_path(relative)
                if match is None:
                    continue
                section, lesson = match
                found[(section.section_number, lesson.lesson_number)] = match

        grouped: dict[str, ParsedSection] = {}
        lessons: dict[str, list[ParsedLesson]] = {}
        for section, lesson in found.values():
            grouped.setdefault(section.path, section)
            lessons.setdefault(section.path, []).append(lesson)

        sections = [
            section.model_copy(
                update={
                    "lessons": sorted(lessons[key], key=lambda lesson: lesson.lesson_number)
                }
            )
            for key, section in grouped.items()
        ]
        sections.sort(key=lambda section: section.section_number)
        logger.info(
            "Parsed %d sections, %d lessons from %s",
            len(sections),
            sum(len(section.lessons) for section in sections),
            path,
        )
        return sections
