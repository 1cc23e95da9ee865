"""Repository for Clip documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.common.identifiers import parse_entity_id
from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import ClipDocument


class ClipRepository(CourseRepository[ClipDocument]):
    """Repository for the clips on video timelines."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "clips"

    @classmethod
    def create(cls, client: MongoDBClient) -> "ClipRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_videos(
        self,
        video_ids: list[str],
        with_archived: bool = False,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[ClipDocument]:
        """List the clips of the given videos in timeline order."""
        if not video_ids:
            return []
        query: dict[str, object] = {"video_id": {"$in": video_ids}}
        if not with_archived:
            query["archived"] = False
        return await self.find_many(query, sort=[("order", 1)], session=session)

    async def get_many(self, clip_ids: list[str]) -> list[ClipDocument]:
        """Get clips by id; unknown ids are skipped."""
        object_ids = [oid for oid in map(parse_entity_id, clip_ids) if oid is not None]
        if not object_ids:
            return []
        return await self.find_many({"_id": {"$in": object_ids}})
