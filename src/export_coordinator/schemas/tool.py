"""Payloads exchanged with the rendering/transcription tool."""

from pydantic import Field

from src.common.base_course_model import BaseCourseModel


class ExportClip(BaseCourseModel):
    """One span of footage in an export, in timeline order."""

    input_video: str
    start_time: float
    duration: float = Field(gt=0)
    beat_type: str = "none"


class ExportRequest(BaseCourseModel):
    video_id: str
    clips: list[ExportClip]
    shorts_directory_output_name: str | None = None


class ExportResult(BaseCourseModel):
    """What the tool reports back for an export."""

    success: bool
    output_path: str | None = None
    message: str | None = None


class TranscriptionClip(BaseCourseModel):
    """A clip span to transcribe, keyed by clip id."""

    id: str
    input_video: str
    start_time: float
    duration: float = Field(gt=0)


class TranscriptSegment(BaseCourseModel):
    text: str


class TranscribedClip(BaseCourseModel):
    """Transcript of one clip, segments in spoken order."""

    id: str
    segments: list[TranscriptSegment]

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)


class FirstFrameRequest(BaseCourseModel):
    input_video: str
    seek_to: float = Field(ge=0)


class FirstFrameResult(BaseCourseModel):
    image_path: str


class ObsClipsRequest(BaseCourseModel):
    file_path: str | None = None
    start_time: float | None = None


class ObsClip(BaseCourseModel):
    """A clip the tool detected in a fresh OBS recording."""

    input_video: str
    start_time: float
    end_time: float


class ObsClipsResult(BaseCourseModel):
    clips: list[ObsClip]
