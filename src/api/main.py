"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.container import ServiceContainer, build_services
from src.api.errors import register_error_handlers
from src.api.routes import clips, lessons, repos, versions, videos
from src.export_coordinator.config import get_rendering_tool_config
from src.export_coordinator.tool import CliRenderingTool
from src.mongodb.client import MongoDBClient
from src.mongodb.config import get_mongodb_config
from src.repo_store.config import get_repo_store_config

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the services from the environment unless they were injected."""
    if getattr(app.state, "services", None) is not None:
        yield
        return

    rendering_config = get_rendering_tool_config()
    db = MongoDBClient(get_mongodb_config())
    app.state.services = build_services(
        db,
        CliRenderingTool(rendering_config),
        repo_store_config=get_repo_store_config(),
        rendering_config=rendering_config,
    )
    if not await db.ping():
        logger.warning("MongoDB is not reachable at startup")

    yield

    await db.close()


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """Create the API application.

    Args:
        services: Prebuilt services (tests); built from the environment on
            startup when omitted.
    """
    app = FastAPI(
        title="Course Video Manager API",
        description="Versioned course structure and clip timeline engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(repos.router, prefix="/api/repos", tags=["repos"])
    app.include_router(versions.router, prefix="/api/versions", tags=["versions"])
    app.include_router(lessons.sections_router, prefix="/api/sections", tags=["sections"])
    app.include_router(lessons.router, prefix="/api/lessons", tags=["lessons"])
    app.include_router(videos.router, prefix="/api/videos", tags=["videos"])
    app.include_router(
        clips.clip_sections_router, prefix="/api/clip-sections", tags=["clip-sections"]
    )
    app.include_router(clips.router, prefix="/api/clips", tags=["clips"])

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
