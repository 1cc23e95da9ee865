"""Rendering tool settings."""

import os

from src.common.base_course_model import BaseCourseModel


class RenderingToolConfig(BaseCourseModel):
    """Configuration for the external rendering/transcription CLI."""

    # Executable plus leading arguments, split shell-style
    command: str = "tt"
    timeout_seconds: float = 600.0

    # Added to the duration of the last exported clip
    final_video_padding_seconds: float = 0.5


def get_rendering_tool_config() -> RenderingToolConfig:
    """Get rendering tool configuration from environment variables.

    Environment variables:
        RENDERING_TOOL_COMMAND: Command to run (default: tt)
        RENDERING_TOOL_TIMEOUT_SECONDS: Per-call timeout (default: 600)
        FINAL_VIDEO_PADDING_SECONDS: Trailing padding on the last clip (default: 0.5)
    """
    return RenderingToolConfig(
        command=os.environ.get("RENDERING_TOOL_COMMAND", "tt"),
        timeout_seconds=float(os.environ.get("RENDERING_TOOL_TIMEOUT_SECONDS", "600")),
        final_video_padding_seconds=float(
            os.environ.get("FINAL_VIDEO_PADDING_SECONDS", "0.5")
        ),
    )
