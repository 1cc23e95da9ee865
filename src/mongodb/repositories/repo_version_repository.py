"""Repository for RepoVersion documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository, Sort
from src.mongodb.schemas import RepoVersionDocument

NEWEST_FIRST: Sort = [("created_at", -1), ("sequence", -1)]


class RepoVersionRepository(CourseRepository[RepoVersionDocument]):
    """Repository for a repo's linear version history."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "repo_versions"

    @classmethod
    def create(cls, client: MongoDBClient) -> "RepoVersionRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_repo(
        self,
        repo_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[RepoVersionDocument]:
        """List a repo's versions, newest first."""
        return await self.find_many({"repo_id": repo_id}, sort=NEWEST_FIRST, session=session)

    async def get_latest(
        self,
        repo_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> RepoVersionDocument | None:
        """Get the latest version of a repo, or None if it has none."""
        return await self.find_first({"repo_id": repo_id}, sort=NEWEST_FIRST, session=session)
