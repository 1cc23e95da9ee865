"""Mapping of engine failures to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.common.errors import (
    AmbiguousRepoUpdateError,
    CannotArchiveLessonVideoError,
    CannotDeleteNonLatestVersionError,
    CannotDeleteOnlyVersionError,
    CourseEngineError,
    InvalidClipRangeError,
    InvalidOrderError,
    LessonAlreadyHasVideoError,
    NotFoundError,
    NotLatestVersionError,
    RenderingToolError,
    RepoPathDoesNotExistError,
    UnknownDBServiceError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[CourseEngineError], int] = {
    NotFoundError: 404,
    NotLatestVersionError: 409,
    CannotDeleteOnlyVersionError: 409,
    CannotDeleteNonLatestVersionError: 409,
    AmbiguousRepoUpdateError: 409,
    CannotArchiveLessonVideoError: 409,
    LessonAlreadyHasVideoError: 409,
    InvalidOrderError: 422,
    InvalidClipRangeError: 422,
    RepoPathDoesNotExistError: 422,
    RenderingToolError: 502,
    UnknownDBServiceError: 500,
}


def status_for(error: CourseEngineError) -> int:
    """HTTP status for an engine failure."""
    return STATUS_BY_ERROR.get(type(error), 500)


async def course_engine_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an engine failure as {"error", "message", "details"}."""
    assert isinstance(exc, CourseEngineError)
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"error": exc.kind, "message": str(exc), "details": exc.details()},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CourseEngineError, course_engine_error_handler)
