"""Changelog projection over version snapshots.

Pure functions: no database access, no clock. Versions are matched through
the `previous_version_*_id` links written when a version is copied, so a
renamed lesson is reported as a rename rather than a delete plus an add.
"""

import re
from collections.abc import Iterable

from src.changelog.schemas import (
    ChangelogEntry,
    LessonRef,
    LessonRename,
    Rename,
    VersionChanges,
)
from src.structure_store.schemas import VersionSnapshot

_NUMERIC_PREFIX = re.compile(r"^\d+(\.\d+)?-")


def format_path(path: str) -> str:
    """Display form of a section/lesson path: "01-getting-started" -> "getting started"."""
    return _NUMERIC_PREFIX.sub("", path).replace("-", " ")


def _lesson_label(ref: LessonRef) -> str:
    return f"{format_path(ref.section_path)} / {format_path(ref.lesson_path)}"


def detect_changes(current: VersionSnapshot, previous: VersionSnapshot) -> VersionChanges:
    """Compare a version with the one it was copied from."""
    previous_sections = {section.id: section for section in previous.sections}
    previous_lessons = {
        lesson.id: lesson for section in previous.sections for lesson in section.lessons
    }

    new_lessons: list[LessonRef] = []
    renamed_sections: list[Rename] = []
    renamed_lessons: list[LessonRename] = []
    content_changes: list[LessonRef] = []
    referenced_sections: set[str] = set()
    referenced_lessons: set[str] = set()

    for section in current.sections:
        source_section = previous_sections.get(section.previous_version_section_id or "")
        if source_section is not None:
            if section.previous_version_section_id not in referenced_sections:
                if source_section.title != section.title:
                    renamed_sections.append(
                        Rename(old_path=source_section.title, new_path=section.title)
                    )
            referenced_sections.add(source_section.id)

        for lesson in section.lessons:
            source_lesson = previous_lessons.get(lesson.previous_version_lesson_id or "")
            if lesson.previous_version_lesson_id is None:
                new_lessons.append(
                    LessonRef(section_path=section.title, lesson_path=lesson.path)
                )
                continue
            referenced_lessons.add(lesson.previous_version_lesson_id)
            if source_lesson is None:
                continue
            if source_lesson.path != lesson.path:
                renamed_lessons.append(
                    LessonRename(
                        section_path=section.title,
                        old_path=source_lesson.path,
                        new_path=lesson.path,
                    )
                )
            if source_lesson.transcript != lesson.transcript:
                content_changes.append(
                    LessonRef(section_path=section.title, lesson_path=lesson.path)
                )

    deleted_sections: list[str] = []
    deleted_lessons: list[LessonRef] = []
    for section in previous.sections:
        if section.id not in referenced_sections:
            deleted_sections.append(section.title)
            continue
        deleted_lessons.extend(
            LessonRef(section_path=section.title, lesson_path=lesson.path)
            for lesson in section.lessons
            if lesson.id not in referenced_lessons
        )

    return VersionChanges(
        new_lessons=new_lessons,
        renamed_sections=renamed_sections,
        renamed_lessons=renamed_lessons,
        content_changes=content_changes,
        deleted_sections=deleted_sections,
        deleted_lessons=deleted_lessons,
    )


def describe_changes(changes: VersionChanges | None) -> list[str]:
    """Human-readable lines for one version's changes."""
    if changes is None:
        return ["Initial version."]
    if changes.is_empty:
        return ["No significant changes."]

    lines = [f"New lesson: {_lesson_label(ref)}" for ref in changes.new_lessons]
    lines += [
        f"Renamed section: {format_path(r.old_path)} → {format_path(r.new_path)}"
        for r in changes.renamed_sections
    ]
    lines += [
        f"Renamed lesson: {format_path(r.section_path)} / "
        f"{format_path(r.old_path)} → {format_path(r.new_path)}"
        for r in changes.renamed_lessons
    ]
    lines += [f"Content changed: {_lesson_label(ref)}" for ref in changes.content_changes]
    lines += [f"Deleted section: {format_path(path)}" for path in changes.deleted_sections]
    lines += [f"Deleted lesson: {_lesson_label(ref)}" for ref in changes.deleted_lessons]
    return lines


def build_changelog(versions: Iterable[VersionSnapshot]) -> list[ChangelogEntry]:
    """Project a repo's versions into changelog entries, oldest to newest.

    Input order does not matter; versions are sorted by creation time.
    """
    ordered = sorted(versions, key=lambda version: (version.created_at, version.sequence))
    entries: list[ChangelogEntry] = []
    for index, version in enumerate(ordered):
        changes = detect_changes(version, ordered[index - 1]) if index > 0 else None
        entries.append(
            ChangelogEntry(
                version_id=version.id,
                version_name=version.name,
                created_at=version.created_at,
                changes=changes,
                lines=describe_changes(changes),
            )
        )
    return entries


def _bullets(heading: str, items: list[str]) -> list[str]:
    if not items:
        return []
    return [f"### {heading}", "", *(f"- {item}" for item in items), ""]


def render_changelog_markdown(entries: list[ChangelogEntry]) -> str:
    """Render entries as a Markdown document, newest version first."""
    if not entries:
        return "# Changelog\n\nNo versions found.\n"

    lines = ["# Changelog", ""]
    for entry in reversed(entries):
        lines += [f"## {entry.version_name} ({entry.created_at.date().isoformat()})", ""]
        changes = entry.changes
        if changes is None:
            lines += ["Initial version.", ""]
            continue
        if changes.is_empty:
            lines += ["No significant changes.", ""]
            continue

        lines += _bullets("New Lessons", [_lesson_label(ref) for ref in changes.new_lessons])
        lines += _bullets(
            "Renamed",
            [
                f"{format_path(r.old_path)} → {format_path(r.new_path)}"
                for r in changes.renamed_sections
            ]
            + [
                f"{format_path(r.section_path)} / {format_path(r.old_path)} → "
                f"{format_path(r.new_path)}"
                for r in changes.renamed_lessons
            ],
        )
        lines += _bullets("Content Changes", [_lesson_label(ref) for ref in changes.content_changes])
        lines += _bullets(
            "Deleted",
            [f"{format_path(path)} (entire section)" for path in changes.deleted_sections]
            + [_lesson_label(ref) for ref in changes.deleted_lessons],
        )
    return "\n".join(lines)
