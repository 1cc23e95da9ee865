"""Repository for Video documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import VideoDocument


class VideoRepository(CourseRepository[VideoDocument]):
    """Repository for lesson-bound and standalone videos."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "videos"

    @classmethod
    def create(cls, client: MongoDBClient) -> "VideoRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_lessons(
        self,
        lesson_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[VideoDocument]:
        """List the videos attached to the given lessons, ordered by path."""
        if not lesson_ids:
            return []
        return await self.find_many(
            {"lesson_id": {"$in": lesson_ids}},
            sort=[("path", 1)],
            session=session,
        )

    async def list_standalone(self, archived: bool = False) -> list[VideoDocument]:
        """List standalone videos by archive status, newest first."""
        return await self.find_many(
            {"lesson_id": None, "archived": archived},
            sort=[("created_at", -1)],
        )
