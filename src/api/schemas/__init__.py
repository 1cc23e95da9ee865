"""API schemas for requests and responses."""

from src.api.schemas.requests import (
    AddRepoRequest,
    AppendClipsRequest,
    AppendFromObsRequest,
    ArchiveRequest,
    CopyVersionRequest,
    CreateClipSectionRequest,
    CreateLessonsRequest,
    CreateSectionsRequest,
    CreateVideoRequest,
    ExportVideoRequest,
    InsertClipSectionRequest,
    PlaceClipSectionRequest,
    RenameRequest,
    RenameVideoRequest,
    ReorderRequest,
    TranscribeClipsRequest,
    UpdateClipRequest,
    UpdateLessonRequest,
    UpdateRepoFilePathRequest,
)
from src.api.schemas.responses import (
    ChangelogResponse,
    ClipResponse,
    ClipSectionResponse,
    FirstFrameResponse,
    LessonResponse,
    RepoResponse,
    SectionResponse,
    TimelineResponse,
    VersionResponse,
    VideoResponse,
)

__all__ = [
    "AddRepoRequest",
    "AppendClipsRequest",
    "AppendFromObsRequest",
    "ArchiveRequest",
    "CopyVersionRequest",
    "CreateClipSectionRequest",
    "CreateLessonsRequest",
    "CreateSectionsRequest",
    "CreateVideoRequest",
    "ExportVideoRequest",
    "InsertClipSectionRequest",
    "PlaceClipSectionRequest",
    "RenameRequest",
    "RenameVideoRequest",
    "ReorderRequest",
    "TranscribeClipsRequest",
    "UpdateClipRequest",
    "UpdateLessonRequest",
    "UpdateRepoFilePathRequest",
    "ChangelogResponse",
    "ClipResponse",
    "ClipSectionResponse",
    "FirstFrameResponse",
    "LessonResponse",
    "RepoResponse",
    "SectionResponse",
    "TimelineResponse",
    "VersionResponse",
    "VideoResponse",
]
