"""Export coordinator schemas."""

from src.export_coordinator.schemas.tool import (
    ExportClip,
    ExportRequest,
    ExportResult,
    FirstFrameRequest,
    FirstFrameResult,
    ObsClip,
    ObsClipsRequest,
    ObsClipsResult,
    TranscribedClip,
    TranscriptionClip,
    TranscriptSegment,
)

__all__ = [
    "ExportClip",
    "ExportRequest",
    "ExportResult",
    "FirstFrameRequest",
    "FirstFrameResult",
    "ObsClip",
    "ObsClipsRequest",
    "ObsClipsResult",
    "TranscribedClip",
    "TranscriptionClip",
    "TranscriptSegment",
]
