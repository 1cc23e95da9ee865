"""Failure variants raised by the engine services.

The set is closed: callers (the API layer, scripts) can match on the concrete
class or on the `kind` tag. Every variant keeps its structured fields as
attributes and exposes them through `details()`.
"""

from typing import Any, ClassVar


class CourseEngineError(Exception):
    """Base exception for all engine failures."""

    kind: ClassVar[str] = "CourseEngineError"

    def details(self) -> dict[str, Any]:
        """Return the structured fields of this failure."""
        return {}


class NotFoundError(CourseEngineError):
    """Raised when a referenced entity does not exist."""

    kind = "NotFoundError"

    def __init__(
        self,
        type: str,
        params: dict[str, Any],
        message: str | None = None,
    ) -> None:
        self.type = type
        self.params = params
        super().__init__(message or f"{type}: entity not found for {params}")

    def details(self) -> dict[str, Any]:
        return {"type": self.type, "params": self.params}


class UnknownDBServiceError(CourseEngineError):
    """Raised when the database fails in a way the engine does not model."""

    kind = "UnknownDBServiceError"

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"Unexpected database failure: {cause}")

    def details(self) -> dict[str, Any]:
        return {"cause": str(self.cause)}


class NotLatestVersionError(CourseEngineError):
    """Raised when branching from a version that is no longer the latest."""

    kind = "NotLatestVersionError"

    def __init__(self, source_version_id: str, latest_version_id: str) -> None:
        self.source_version_id = source_version_id
        self.latest_version_id = latest_version_id
        super().__init__(
            f"Version {source_version_id} is not the latest version "
            f"(latest is {latest_version_id})"
        )

    def details(self) -> dict[str, Any]:
        return {
            "source_version_id": self.source_version_id,
            "latest_version_id": self.latest_version_id,
        }


class CannotDeleteOnlyVersionError(CourseEngineError):
    """Raised when deleting the sole version of a repo."""

    kind = "CannotDeleteOnlyVersionError"

    def __init__(self, version_id: str, repo_id: str) -> None:
        self.version_id = version_id
        self.repo_id = repo_id
        super().__init__(
            f"Cannot delete version {version_id}: it is the only version of repo {repo_id}"
        )

    def details(self) -> dict[str, Any]:
        return {"version_id": self.version_id, "repo_id": self.repo_id}


class CannotDeleteNonLatestVersionError(CourseEngineError):
    """Raised when deleting a version that has a newer successor."""

    kind = "CannotDeleteNonLatestVersionError"

    def __init__(self, version_id: str, latest_version_id: str) -> None:
        self.version_id = version_id
        self.latest_version_id = latest_version_id
        super().__init__(
            f"Cannot delete version {version_id}: only the latest version "
            f"({latest_version_id}) can be deleted"
        )

    def details(self) -> dict[str, Any]:
        return {
            "version_id": self.version_id,
            "latest_version_id": self.latest_version_id,
        }


class AmbiguousRepoUpdateError(CourseEngineError):
    """Raised when several repos share the path being rewritten."""

    kind = "AmbiguousRepoUpdateError"

    def __init__(self, file_path: str, repo_count: int) -> None:
        self.file_path = file_path
        self.repo_count = repo_count
        super().__init__(f"Cannot update: {repo_count} repos share path {file_path!r}")

    def details(self) -> dict[str, Any]:
        return {"file_path": self.file_path, "repo_count": self.repo_count}


class CannotArchiveLessonVideoError(CourseEngineError):
    """Raised when archiving a video that is attached to a lesson."""

    kind = "CannotArchiveLessonVideoError"

    def __init__(self, video_id: str, lesson_id: str) -> None:
        self.video_id = video_id
        self.lesson_id = lesson_id
        super().__init__(
            f"Video {video_id} belongs to lesson {lesson_id} and cannot be archived"
        )

    def details(self) -> dict[str, Any]:
        return {"video_id": self.video_id, "lesson_id": self.lesson_id}


class LessonAlreadyHasVideoError(CourseEngineError):
    """Raised when attaching a second video to a lesson."""

    kind = "LessonAlreadyHasVideoError"

    def __init__(self, lesson_id: str, video_id: str) -> None:
        self.lesson_id = lesson_id
        self.video_id = video_id
        super().__init__(f"Lesson {lesson_id} already has video {video_id}")

    def details(self) -> dict[str, Any]:
        return {"lesson_id": self.lesson_id, "video_id": self.video_id}


class InvalidOrderError(CourseEngineError):
    """Raised when a lesson path has no numeric leading order token, or when a
    lesson number disagrees with it.
    """

    kind = "InvalidOrderError"

    def __init__(self, path: str, lesson_number: float | None = None) -> None:
        self.path = path
        self.lesson_number = lesson_number
        if lesson_number is None:
            super().__init__(f"String does not contain a valid order: {path!r}")
        else:
            super().__init__(
                f"Lesson number {lesson_number} does not match the order of {path!r}"
            )

    def details(self) -> dict[str, Any]:
        if self.lesson_number is None:
            return {"path": self.path}
        return {"path": self.path, "lesson_number": self.lesson_number}


class InvalidClipRangeError(CourseEngineError):
    """Raised when a clip's end time does not come after its start time."""

    kind = "InvalidClipRangeError"

    def __init__(self, source_start_time: float, source_end_time: float) -> None:
        self.source_start_time = source_start_time
        self.source_end_time = source_end_time
        super().__init__(
            f"Clip end {source_end_time} must be after clip start {source_start_time}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "source_start_time": self.source_start_time,
            "source_end_time": self.source_end_time,
        }


class RepoPathDoesNotExistError(CourseEngineError):
    """Raised when a repo path is missing on the filesystem."""

    kind = "RepoPathDoesNotExistError"

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(f"Path does not exist: {file_path}")

    def details(self) -> dict[str, Any]:
        return {"file_path": self.file_path}


class RenderingToolError(CourseEngineError):
    """Raised when the external rendering/transcription tool fails."""

    kind = "RenderingToolError"

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"Rendering tool failed during {operation}: {message}")

    def details(self) -> dict[str, Any]:
        return {"operation": self.operation, "message": self.message}
