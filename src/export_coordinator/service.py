"""Export/transcription coordinator.

Every call to the rendering tool happens outside any database unit of work:
inputs are read first, the tool runs, and results are written back in a
separate unit. A failing tool call writes nothing.
"""

import logging
import re
from collections.abc import Sequence
from datetime import UTC, datetime

from src.export_coordinator.schemas import (
    ExportClip,
    ExportRequest,
    ExportResult,
    FirstFrameRequest,
    ObsClipsRequest,
    TranscriptionClip,
)
from src.export_coordinator.tool import RenderingTool
from src.mongodb.schemas import ClipDocument
from src.timeline.schemas import AfterClipInsertionPoint, NewClip
from src.timeline.service import TimelineService

logger = logging.getLogger(__name__)

_WINDOWS_DRIVE = re.compile(r"^([A-Za-z]):[\\/]")


def windows_to_wsl(path: str) -> str:
    """Map "C:\\Users\\me\\clip.mkv" to "/mnt/c/Users/me/clip.mkv".

    Paths without a drive letter are returned unchanged.
    """
    match = _WINDOWS_DRIVE.match(path)
    if match is None:
        return path
    drive = match.group(1).lower()
    rest = path[match.end() :].replace("\\", "/")
    return f"/mnt/{drive}/{rest}"


def build_export_clips(
    clips: Sequence[ClipDocument],
    final_padding_seconds: float,
) -> list[ExportClip]:
    """Turn timeline-ordered clips into render descriptors.

    Each duration is end - start; only the last clip gets the trailing
    padding.
    """
    last = len(clips) - 1
    return [
        ExportClip(
            input_video=clip.video_filename,
            start_time=clip.source_start_time,
            duration=clip.duration_seconds + (final_padding_seconds if i == last else 0.0),
            beat_type=clip.beat_type,
        )
        for i, clip in enumerate(clips)
    ]


class ExportCoordinatorService:
    """Sends clip selections to the rendering tool and folds results back."""

    def __init__(
        self,
        timeline: TimelineService,
        tool: RenderingTool,
        final_video_padding_seconds: float = 0.5,
    ) -> None:
        self._timeline = timeline
        self._tool = tool
        self._padding = final_video_padding_seconds

    async def export_video_clips(
        self,
        video_id: str,
        clips: Sequence[ClipDocument],
        shorts_directory_output_name: str | None = None,
    ) -> ExportResult:
        """Render clips that are already in timeline order.

        Returns:
            The tool's result, unmodified.

        Raises:
            RenderingToolError: If the tool fails.
        """
        request = ExportRequest(
            video_id=video_id,
            clips=build_export_clips(clips, self._padding),
            shorts_directory_output_name=shorts_directory_output_name,
        )
        logger.info("[video=%s] Exporting %d clips", video_id, len(request.clips))
        result = await self._tool.export_video_clips(request)
        logger.info("[video=%s] Export finished: success=%s", video_id, result.success)
        return result

    async def export_video(
        self,
        video_id: str,
        shorts_directory_output_name: str | None = None,
    ) -> ExportResult:
        """Render the visible timeline of a video.

        Archived clips, archived clip sections and the clips under them are
        left out.
        """
        timeline = await self._timeline.get_video_timeline(video_id)
        return await self.export_video_clips(
            video_id, timeline.clips, shorts_directory_output_name
        )

    async def transcribe_clips(self, clip_ids: list[str]) -> list[ClipDocument]:
        """Transcribe clips and store their text.

        Clips the tool does not return are left as they were; unknown ids
        are skipped.

        Returns:
            The clips whose transcript was written.
        """
        clips = await self._timeline.get_clips(clip_ids)
        if not clips:
            return []

        requested = {str(clip.id) for clip in clips}
        transcribed = await self._tool.transcribe_clips(
            [
                TranscriptionClip(
                    id=str(clip.id),
                    input_video=clip.video_filename,
                    start_time=clip.source_start_time,
                    duration=clip.duration_seconds,
                )
                for clip in clips
            ]
        )

        transcribed_at = datetime.now(UTC)
        transcripts: dict[str, tuple[str, datetime]] = {}
        for result in transcribed:
            if result.id not in requested:
                logger.warning("Ignoring transcript for unrequested clip %s", result.id)
                continue
            transcripts[result.id] = (result.text, transcribed_at)

        missing = requested - transcripts.keys()
        if missing:
            logger.warning("Tool returned no transcript for %d clips", len(missing))

        updated = await self._timeline.set_clip_transcripts(transcripts)
        logger.info("Transcribed %d of %d clips", len(updated), len(clips))
        return updated

    async def get_first_frame(self, clip_id: str) -> str:
        """Extract the frame at a clip's start; returns the image path."""
        clip = await self._timeline.get_clip(clip_id)
        result = await self._tool.get_first_frame(
            FirstFrameRequest(input_video=clip.video_filename, seek_to=clip.source_start_time)
        )
        return result.image_path

    async def append_from_obs(
        self,
        video_id: str,
        file_path: str | None = None,
        insert_after_clip_id: str | None = None,
    ) -> list[ClipDocument]:
        """Append clips the tool finds in the latest OBS recording.

        When `file_path` is given, the tool is asked to start one second
        before the end of the last clip already cut from that file. Clips
        that already exist (same file, start and end) are dropped.

        Raises:
            NotFoundError: If the video, or the clip to insert after, is missing.
            RenderingToolError: If the tool fails.
        """
        resolved_path = windows_to_wsl(file_path) if file_path else None

        timeline = await self._timeline.get_video_timeline(video_id, with_archived=True)
        from_file = [
            clip for clip in timeline.clips if clip.video_filename == resolved_path
        ]
        start_time = None
        if from_file:
            last = max(from_file, key=lambda clip: clip.source_start_time)
            start_time = max(last.source_end_time - 1, 0)

        captured = await self._tool.get_latest_obs_clips(
            ObsClipsRequest(file_path=resolved_path, start_time=start_time)
        )
        if not captured.clips:
            return []

        # Re-read: the timeline may have changed while the tool ran
        timeline = await self._timeline.get_video_timeline(video_id, with_archived=True)
        existing = {
            (clip.video_filename, clip.source_start_time, clip.source_end_time)
            for clip in timeline.clips
        }
        to_add = [
            NewClip(input_video=clip.input_video, start_time=clip.start_time, end_time=clip.end_time)
            for clip in captured.clips
            if (clip.input_video, clip.start_time, clip.end_time) not in existing
        ]
        if not to_add:
            return []

        insertion_point = (
            AfterClipInsertionPoint(clip_id=insert_after_clip_id)
            if insert_after_clip_id
            else None
        )
        logger.info("[video=%s] Appending %d clips from OBS", video_id, len(to_add))
        return await self._timeline.append_clips(video_id, to_add, insertion_point)
