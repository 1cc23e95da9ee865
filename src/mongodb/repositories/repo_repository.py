"""Repository for Repo documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import RepoDocument


class RepoRepository(CourseRepository[RepoDocument]):
    """Repository for storing and retrieving repos."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "repos"

    @classmethod
    def create(cls, client: MongoDBClient) -> "RepoRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_repos(self, archived: bool = False) -> list[RepoDocument]:
        """List repos by archive status, oldest first."""
        return await self.find_many({"archived": archived}, sort=[("created_at", 1)])

    async def find_by_file_path(
        self,
        file_path: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[RepoDocument]:
        """Find every repo pointing at `file_path` (paths are not unique)."""
        return await self.find_many({"file_path": file_path}, session=session)
