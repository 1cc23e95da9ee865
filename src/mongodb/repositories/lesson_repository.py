"""Repository for Lesson documents."""

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.mongodb.client import MongoDBClient
from src.mongodb.repositories.base import CourseRepository
from src.mongodb.schemas import LessonDocument


class LessonRepository(CourseRepository[LessonDocument]):
    """Repository for the lessons of sections."""

    class Meta:  # pyright: ignore[reportIncompatibleVariableOverride]
        collection_name = "lessons"

    @classmethod
    def create(cls, client: MongoDBClient) -> "LessonRepository":
        """Create a repository instance bound to the client's database."""
        return cls(client.database)  # pyright: ignore[reportArgumentType]

    async def list_for_sections(
        self,
        section_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[LessonDocument]:
        """List the lessons of the given sections ordered by lesson number."""
        if not section_ids:
            return []
        return await self.find_many(
            {"section_id": {"$in": section_ids}},
            sort=[("lesson_number", 1)],
            session=session,
        )
