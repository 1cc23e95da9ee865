"""Tests for the subprocess-backed rendering tool."""

import shlex
import sys
import textwrap

import pytest

from src.common.errors import RenderingToolError
from src.export_coordinator.config import RenderingToolConfig
from src.export_coordinator.schemas import (
    ExportClip,
    ExportRequest,
    FirstFrameRequest,
    ObsClipsRequest,
    TranscriptionClip,
)
from src.export_coordinator.tool import CliRenderingTool

FAKE_TOOL = textwrap.dedent(
    """
    import json
    import sys

    operation = sys.argv[1]
    payload = json.loads(sys.stdin.read())

    if operation == "export-video-clips":
        total = sum(clip["duration"] for clip in payload["clips"])
        print(json.dumps({"success": True, "output_path": f"/out/{payload['video_id']}.mp4",
                          "message": f"{total:.1f}"}))
    elif operation == "transcribe-clips":
        print(json.dumps([{"id": clip["id"], "segments": [{"text": "hi"}, {"text": "there"}]}
                          for clip in payload]))
    elif operation == "get-first-frame":
        print(json.dumps({"image_path": f"/frames/{payload['seek_to']}.png"}))
    elif operation == "get-latest-obs-clips":
        print(json.dumps({"clips": [{"input_video": payload["file_path"],
                                     "start_time": payload["start_time"], "end_time": 99}]}))
    elif operation == "fail":
        print("codec not found", file=sys.stderr)
        sys.exit(3)
    elif operation == "garbage":
        print("not json")
    elif operation == "hang":
        import time
        time.sleep(30)
    """
)


def _tool(tmp_path, *extra_args: str, timeout: float = 30.0) -> CliRenderingTool:
    script = tmp_path / "fake_tool.py"
    script.write_text(FAKE_TOOL)
    command = " ".join(shlex.quote(part) for part in [sys.executable, str(script), *extra_args])
    return CliRenderingTool(RenderingToolConfig(command=command, timeout_seconds=timeout))


async def test_export_roundtrip(tmp_path):
    tool = _tool(tmp_path)
    request = ExportRequest(
        video_id="vid",
        clips=[
            ExportClip(input_video="a.mkv", start_time=0, duration=1.5),
            ExportClip(input_video="b.mkv", start_time=3, duration=2.0),
        ],
    )

    result = await tool.export_video_clips(request)

    assert result.success is True
    assert result.output_path == "/out/vid.mp4"
    assert result.message == "3.5"


async def test_transcribe_roundtrip(tmp_path):
    tool = _tool(tmp_path)

    [result] = await tool.transcribe_clips(
        [TranscriptionClip(id="c1", input_video="a.mkv", start_time=0, duration=1)]
    )

    assert result.id == "c1"
    assert result.text == "hi there"


async def test_first_frame_and_obs(tmp_path):
    tool = _tool(tmp_path)

    frame = await tool.get_first_frame(FirstFrameRequest(input_video="a.mkv", seek_to=2.5))
    obs = await tool.get_latest_obs_clips(ObsClipsRequest(file_path="rec.mkv", start_time=4))

    assert frame.image_path == "/frames/2.5.png"
    assert [(c.input_video, c.start_time, c.end_time) for c in obs.clips] == [("rec.mkv", 4, 99)]


async def _call(tool: CliRenderingTool):
    # The extra argument comes first, so the script sees it as the operation
    return await tool.get_first_frame(FirstFrameRequest(input_video="a.mkv", seek_to=0))


async def test_non_zero_exit_raises_with_stderr(tmp_path):
    with pytest.raises(RenderingToolError) as exc_info:
        await _call(_tool(tmp_path, "fail"))
    assert exc_info.value.operation == "get-first-frame"
    assert exc_info.value.message == "codec not found"


async def test_malformed_output_raises(tmp_path):
    with pytest.raises(RenderingToolError) as exc_info:
        await _call(_tool(tmp_path, "garbage"))
    assert "malformed output" in exc_info.value.message


async def test_timeout_kills_the_process(tmp_path):
    with pytest.raises(RenderingToolError) as exc_info:
        await _call(_tool(tmp_path, "hang", timeout=0.5))
    assert "timed out" in exc_info.value.message


async def test_missing_executable_raises(tmp_path):
    tool = CliRenderingTool(RenderingToolConfig(command=str(tmp_path / "no-such-tool")))
    with pytest.raises(RenderingToolError):
        await _call(tool)
