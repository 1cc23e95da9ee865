"""Shared fixtures: services over an in-memory MongoDB with fake collaborators."""

import pytest
from mongomock_motor import AsyncMongoMockClient

from src.api.container import ServiceContainer, build_services
from src.common.errors import RenderingToolError
from src.export_coordinator.config import RenderingToolConfig
from src.export_coordinator.schemas import (
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
from src.mongodb.client import MongoDBClient
from src.mongodb.config import MongoDBConfig
from src.repo_store.schemas import ParsedLesson, ParsedSection

PADDING = 0.5


class FakeRenderingTool:
    """Records requests and answers from canned data."""

    def __init__(self) -> None:
        self.export_requests: list[ExportRequest] = []
        self.transcription_requests: list[list[TranscriptionClip]] = []
        self.obs_requests: list[ObsClipsRequest] = []
        # clip id -> segment texts; ids not listed get no transcript
        self.transcripts: dict[str, list[str]] = {}
        self.obs_clips: list[ObsClip] = []
        self.error: RenderingToolError | None = None

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    async def export_video_clips(self, request: ExportRequest) -> ExportResult:
        self.export_requests.append(request)
        self._maybe_fail()
        return ExportResult(success=True, output_path=f"/exports/{request.video_id}.mp4")

    async def transcribe_clips(
        self, clips: list[TranscriptionClip]
    ) -> list[TranscribedClip]:
        self.transcription_requests.append(clips)
        self._maybe_fail()
        return [
            TranscribedClip(
                id=clip.id,
                segments=[TranscriptSegment(text=text) for text in self.transcripts[clip.id]],
            )
            for clip in clips
            if clip.id in self.transcripts
        ]

    async def get_first_frame(self, request: FirstFrameRequest) -> FirstFrameResult:
        self._maybe_fail()
        return FirstFrameResult(image_path=f"/frames/{request.seek_to:.2f}.png")

    async def get_latest_obs_clips(self, request: ObsClipsRequest) -> ObsClipsResult:
        self.obs_requests.append(request)
        self._maybe_fail()
        return ObsClipsResult(clips=self.obs_clips)


class FakeFileSystem:
    def __init__(self, existing: set[str] | None = None) -> None:
        self.existing = existing if existing is not None else set()

    def exists(self, path: str) -> bool:
        return path in self.existing


class FakeRepoParser:
    def __init__(self, sections: list[ParsedSection] | None = None) -> None:
        self.sections = sections or []

    def parse_repo(self, path: str) -> list[ParsedSection]:
        return self.sections


# ===== Fixtures =====


@pytest.fixture
def db() -> MongoDBClient:
    """MongoDB client over an in-memory database, transactions off."""
    config = MongoDBConfig(
        connection_string="mongodb://localhost:27017",
        database_name="course_video_manager_test",
        transactions_enabled=False,
    )
    return MongoDBClient(config, client=AsyncMongoMockClient())


@pytest.fixture
def tool() -> FakeRenderingTool:
    return FakeRenderingTool()


@pytest.fixture
def filesystem() -> FakeFileSystem:
    return FakeFileSystem({"/courses/typescript", "/courses/moved"})


@pytest.fixture
def parser() -> FakeRepoParser:
    return FakeRepoParser(
        [
            ParsedSection(
                path="01-basics",
                section_number=1,
                lessons=[
                    ParsedLesson(path="01-intro", lesson_number=1),
                    ParsedLesson(path="02-variables", lesson_number=2),
                ],
            ),
            ParsedSection(
                path="02-functions",
                section_number=2,
                lessons=[ParsedLesson(path="01-arrow-functions", lesson_number=1)],
            ),
        ]
    )


@pytest.fixture
def services(
    db: MongoDBClient,
    tool: FakeRenderingTool,
    filesystem: FakeFileSystem,
    parser: FakeRepoParser,
) -> ServiceContainer:
    return build_services(
        db,
        tool,
        filesystem=filesystem,
        parser=parser,
        rendering_config=RenderingToolConfig(final_video_padding_seconds=PADDING),
    )


@pytest.fixture
def repo_store(services: ServiceContainer):
    return services.repo_store


@pytest.fixture
def structure(services: ServiceContainer):
    return services.structure


@pytest.fixture
def timeline(services: ServiceContainer):
    return services.timeline


@pytest.fixture
def export(services: ServiceContainer):
    return services.export


@pytest.fixture
async def repo(repo_store):
    """A repo added from the fake parser: two sections, three lessons."""
    return await repo_store.add_repo("/courses/typescript", "TypeScript Course")


@pytest.fixture
async def lesson(repo, repo_store, structure):
    """The first lesson of the repo's latest version."""
    version = await repo_store.get_latest_version(str(repo.id))
    sections = await structure.list_sections(str(version.id))
    return sections[0].lessons[0]


@pytest.fixture
async def video(lesson, timeline):
    """A lesson-bound video with no clips."""
    return await timeline.create_video(str(lesson.id), "problem")


@pytest.fixture
async def standalone_video(timeline):
    return await timeline.create_standalone_video("standalone-demo")
