"""Explicitly constructed engine services."""

from dataclasses import dataclass

from src.export_coordinator.config import RenderingToolConfig
from src.export_coordinator.service import ExportCoordinatorService
from src.export_coordinator.tool import RenderingTool
from src.mongodb.client import MongoDBClient
from src.repo_store.config import RepoStoreConfig
from src.repo_store.filesystem import FileSystem
from src.repo_store.parser import RepoParser
from src.repo_store.service import RepoStoreService
from src.structure_store.service import StructureStoreService
from src.timeline.service import TimelineService


@dataclass(frozen=True)
class ServiceContainer:
    """Every engine component, wired over one database client."""

    db: MongoDBClient
    repo_store: RepoStoreService
    structure: StructureStoreService
    timeline: TimelineService
    export: ExportCoordinatorService


def build_services(
    db: MongoDBClient,
    tool: RenderingTool,
    filesystem: FileSystem | None = None,
    parser: RepoParser | None = None,
    repo_store_config: RepoStoreConfig | None = None,
    rendering_config: RenderingToolConfig | None = None,
) -> ServiceContainer:
    """Wire the services bottom-up: timeline, structure, repos, export."""
    rendering_config = rendering_config or RenderingToolConfig()
    timeline = TimelineService.create(db)
    structure = StructureStoreService.create(db, timeline)
    repo_store = RepoStoreService.create(
        db,
        structure,
        filesystem=filesystem,
        parser=parser,
        config=repo_store_config,
    )
    export = ExportCoordinatorService(
        timeline,
        tool,
        final_video_padding_seconds=rendering_config.final_video_padding_seconds,
    )
    return ServiceContainer(
        db=db,
        repo_store=repo_store,
        structure=structure,
        timeline=timeline,
        export=export,
    )
