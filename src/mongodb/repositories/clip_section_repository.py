"""Repository for ClipSection documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import ClipSectionDocument


class ClipSectionRepository(CourseRepository[ClipSectionDocument]):
    """Repository for the named section markers on video timelines."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "clip_sections"

    @classmethod
    def create(cls, client: MongoDBClient) -> "ClipSectionRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_videos(
        self,
        video_ids: list[str],
        with_archived: bool = False,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[ClipSectionDocument]:
        """List the clip sections of the given videos in timeline order."""
        if not video_ids:
            return []
        query: dict[str, object] = {"video_id": {"$in": video_ids}}
        if not with_archived:
            query["archived"] = False
        return await self.find_many(query, sort=[("order", 1)], session=session)
