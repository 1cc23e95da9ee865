"""The external rendering/transcription tool.

The subprocess implementation runs one CLI invocation per call. The request
is written to stdin as JSON and the tool answers with a single JSON document
on stdout:

    <command> export-video-clips   ExportRequest      -> ExportResult
    <command> transcribe-clips     [TranscriptionClip] -> [TranscribedClip]
    <command> get-first-frame      FirstFrameRequest  -> FirstFrameResult
    <command> get-latest-obs-clips ObsClipsRequest    -> ObsClipsResult
"""

import asyncio
import logging
import shlex
from typing import Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from src.common.errors import RenderingToolError
from src.export_coordinator.config import RenderingToolConfig
from src.export_coordinator.schemas import (
    ExportRequest,
    ExportResult,
    FirstFrameRequest,
    FirstFrameResult,
    ObsClipsRequest,
    ObsClipsResult,
    TranscribedClip,
    TranscriptionClip,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RenderingTool(Protocol):
    """Renders, transcribes and ingests footage outside the engine."""

    async def export_video_clips(self, request: ExportRequest) -> ExportResult: ...

    async def transcribe_clips(
        self, clips: list[TranscriptionClip]
    ) -> list[TranscribedClip]: ...

    async def get_first_frame(self, request: FirstFrameRequest) -> FirstFrameResult: ...

    async def get_latest_obs_clips(self, request: ObsClipsRequest) -> ObsClipsResult: ...


class CliRenderingTool:
    """RenderingTool backed by a command-line program."""

    def __init__(self, config: RenderingToolConfig) -> None:
        self._config = config
        self._argv = shlex.split(config.command)

    async def export_video_clips(self, request: ExportRequest) -> ExportResult:
        return await self._call(
            "export-video-clips", request.model_dump_json(), TypeAdapter(ExportResult)
        )

    async def transcribe_clips(
        self, clips: list[TranscriptionClip]
    ) -> list[TranscribedClip]:
        payload = TypeAdapter(list[TranscriptionClip]).dump_json(clips).decode()
        return await self._call(
            "transcribe-clips", payload, TypeAdapter(list[TranscribedClip])
        )

    async def get_first_frame(self, request: FirstFrameRequest) -> FirstFrameResult:
        return await self._call(
            "get-first-frame", request.model_dump_json(), TypeAdapter(FirstFrameResult)
        )

    async def get_latest_obs_clips(self, request: ObsClipsRequest) -> ObsClipsResult:
        return await self._call(
            "get-latest-obs-clips", request.model_dump_json(), TypeAdapter(ObsClipsResult)
        )

    async def _call(self, operation: str, payload: str, adapter: TypeAdapter[T]) -> T:
        """Run one tool invocation and parse its stdout.

        Raises:
            RenderingToolError: If the process cannot start, exits non-zero,
                runs past the timeout, or prints something unparseable.
        """
        argv = [*self._argv, operation]
        logger.info("Running rendering tool: %s", " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.exception("Rendering tool failed to start")
            raise RenderingToolError(operation, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(payload.encode()),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError as e:
            process.kill()
            await process.wait()
            msg = f"timed out after {self._config.timeout_seconds}s"
            logger.error("Rendering tool %s %s", operation, msg)
            raise RenderingToolError(operation, msg) from e

        if process.returncode != 0:
            msg = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
            logger.error("Rendering tool %s failed: %s", operation, msg)
            raise RenderingToolError(operation, msg)

        try:
            return adapter.validate_json(stdout)
        except ValidationError as e:
            logger.error("Rendering tool %s returned malformed output", operation)
            raise RenderingToolError(operation, f"malformed output: {e}") from e
