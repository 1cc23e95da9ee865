"""Repository for Section documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import SectionDocument


class SectionRepository(CourseRepository[SectionDocument]):
    """Repository for the sections of repo versions."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "sections"

    @classmethod
    def create(cls, client: MongoDBClient) -> "SectionRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_versions(
        self,
        version_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[SectionDocument]:
        """List the sections of the given versions in section order."""
        if not version_ids:
            return []
        return await self.find_many(
            {"repo_version_id": {"$in": version_ids}},
            sort=[("order", 1)],
            session=session,
        )
