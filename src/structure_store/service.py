"""Structure store: sections and lessons nested under a repo version."""

import logging
import math

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.common.errors import InvalidOrderError, NotFoundError
from src.mongodb.client import MongoDBClient
from src.mongodb.repositories import (
    ClipRepository,
    LessonRepository,
    RepoVersionRepository,
    SectionRepository,
    VideoRepository,
)
from src.mongodb.schemas import (
    LessonDocument,
    RepoVersionDocument,
    SectionDocument,
)
from src.structure_store.schemas import (
    ClipSnapshot,
    LessonSnapshot,
    NewLesson,
    NewSection,
    SectionSnapshot,
    SectionWithLessons,
    VersionSnapshot,
    VideoSnapshot,
)
from src.timeline.service import TimelineService

logger = logging.getLogger(__name__)


def parse_lesson_number(path: str) -> float:
    """Parse the leading order token of a lesson path.

    "03-intro" -> 3.0, "2.5-aside" -> 2.5.

    Raises:
        InvalidOrderError: If the token before the first "-" is not a finite
            number.
    """
    token = path.strip().split("-")[0].strip()
    try:
        number = float(token)
    except ValueError:
        raise InvalidOrderError(path) from None
    if not token or not math.isfinite(number):
        raise InvalidOrderError(path)
    return number


class StructureStoreService:
    """Owns sections and lessons; cascades deletes down to the timelines."""

    def __init__(
        self,
        db: MongoDBClient,
        versions: RepoVersionRepository,
        sections: SectionRepository,
        lessons: LessonRepository,
        videos: VideoRepository,
        clips: ClipRepository,
        timeline: TimelineService,
    ) -> None:
        self._db = db
        self._versions = versions
        self._sections = sections
        self._lessons = lessons
        self._videos = videos
        self._clips = clips
        self._timeline = timeline

    @classmethod
    def create(cls, db: MongoDBClient, timeline: TimelineService) -> "StructureStoreService":
        """Build the service and its repositories over one database client."""
        return cls(
            db=db,
            versions=RepoVersionRepository.create(db),
            sections=SectionRepository.create(db),
            lessons=LessonRepository.create(db),
            videos=VideoRepository.create(db),
            clips=ClipRepository.create(db),
            timeline=timeline,
        )

    async def create_sections(
        self,
        sections: list[NewSection],
        repo_version_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[SectionDocument]:
        """Bulk-create sections under a version.

        Returns:
            The created sections, positionally matching `sections`.

        Raises:
            NotFoundError: If the version does not exist.
        """
        async with self._db.join_or_begin(session) as session:
            version = await self._versions.get_by_id(repo_version_id, session=session)
            if version is None:
                raise NotFoundError("createSections", {"repo_version_id": repo_version_id})
            return await self._sections.insert_many(
                [
                    SectionDocument(
                        repo_version_id=repo_version_id,
                        title=section.title,
                        order=section.order if section.order is not None else index,
                    )
                    for index, section in enumerate(sections)
                ],
                session=session,
            )

    async def create_lessons(
        self,
        section_id: str,
        lessons: list[NewLesson],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[LessonDocument]:
        """Bulk-create lessons under a section.

        Every path is parsed before anything is written, so one bad path
        creates no lessons at all.

        Raises:
            NotFoundError: If the section does not exist.
            InvalidOrderError: If a path has no numeric leading token.
        """
        numbers = [parse_lesson_number(lesson.path) for lesson in lessons]
        async with self._db.join_or_begin(session) as session:
            section = await self._sections.get_by_id(section_id, session=session)
            if section is None:
                raise NotFoundError("createLessons", {"section_id": section_id})
            return await self._lessons.insert_many(
                [
                    LessonDocument(section_id=section_id, path=lesson.path, lesson_number=number)
                    for lesson, number in zip(lessons, numbers, strict=True)
                ],
                session=session,
            )

    async def get_lesson(self, lesson_id: str) -> LessonDocument:
        lesson = await self._lessons.get_by_id(lesson_id)
        if lesson is None:
            raise NotFoundError("getLesson", {"lesson_id": lesson_id})
        return lesson

    async def update_lesson(
        self,
        lesson_id: str,
        path: str,
        section_id: str | None = None,
        lesson_number: float | None = None,
    ) -> LessonDocument:
        """Rename a lesson and optionally move it to another section.

        The path's leading token is always validated and becomes the lesson
        number. A caller-supplied `lesson_number` must equal it. `section_id`
        defaults to the current section.

        Raises:
            InvalidOrderError: If the new path has no numeric leading token,
                or `lesson_number` differs from it.
            NotFoundError: If the lesson or the target section does not exist.
        """
        parsed = parse_lesson_number(path)
        if lesson_number is not None and lesson_number != parsed:
            logger.warning(
                "[lesson=%s] Lesson number %s does not match path %r",
                lesson_id,
                lesson_number,
                path,
            )
            raise InvalidOrderError(path, lesson_number=lesson_number)
        fields: dict[str, object] = {"path": path, "lesson_number": parsed}
        async with self._db.transaction() as session:
            if section_id is not None:
                section = await self._sections.get_by_id(section_id, session=session)
                if section is None:
                    raise NotFoundError("updateLesson", {"section_id": section_id})
                fields["section_id"] = section_id
            lesson = await self._lessons.update_fields(lesson_id, fields, session=session)
        if lesson is None:
            raise NotFoundError("updateLesson", {"lesson_id": lesson_id})
        logger.info("[lesson=%s] Updated path to %r", lesson_id, path)
        return lesson

    async def delete_lesson(self, lesson_id: str) -> None:
        """Delete a lesson along with its videos and their clips."""
        async with self._db.transaction() as session:
            lesson = await self._lessons.get_by_id(lesson_id, session=session)
            if lesson is None:
                raise NotFoundError("deleteLesson", {"lesson_id": lesson_id})
            await self.delete_lessons_cascade([lesson_id], session=session)
        logger.info("[lesson=%s] Deleted", lesson_id)

    async def delete_section(self, section_id: str) -> None:
        """Delete a section with all of its lessons."""
        async with self._db.transaction() as session:
            section = await self._sections.get_by_id(section_id, session=session)
            if section is None:
                raise NotFoundError("deleteSection", {"section_id": section_id})
            await self.delete_sections_cascade([section_id], session=session)
        logger.info("[section=%s] Deleted", section_id)

    async def delete_lessons_cascade(
        self,
        lesson_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> None:
        await self._timeline.delete_videos_for_lessons(lesson_ids, session=session)
        await self._lessons.delete_by_ids(lesson_ids, session=session)

    async def delete_sections_cascade(
        self,
        section_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> None:
        lessons = await self._lessons.list_for_sections(section_ids, session=session)
        await self.delete_lessons_cascade([str(lesson.id) for lesson in lessons], session=session)
        await self._sections.delete_by_ids(section_ids, session=session)

    async def delete_version_contents(
        self,
        version_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> None:
        """Delete every section, lesson, video and clip under the versions."""
        sections = await self._sections.list_for_versions(version_ids, session=session)
        await self.delete_sections_cascade([str(section.id) for section in sections], session=session)

    async def copy_version_contents(
        self,
        source_version_id: str,
        target_version_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> None:
        """Deep-copy sections, lessons and lesson videos onto another version.

        Copies get fresh ids and link back to their source through the
        `previous_version_*_id` fields.
        """
        sections = await self._sections.list_for_versions([source_version_id], session=session)
        copied_sections = await self._sections.insert_many(
            [
                SectionDocument(
                    repo_version_id=target_version_id,
                    title=section.title,
                    order=section.order,
                    previous_version_section_id=str(section.id),
                )
                for section in sections
            ],
            session=session,
        )
        section_id_map = {
            copy.previous_version_section_id: str(copy.id) for copy in copied_sections
        }

        lessons = await self._lessons.list_for_sections(list(section_id_map), session=session)
        copied_lessons = await self._lessons.insert_many(
            [
                LessonDocument(
                    section_id=section_id_map[lesson.section_id],
                    path=lesson.path,
                    lesson_number=lesson.lesson_number,
                    previous_version_lesson_id=str(lesson.id),
                )
                for lesson in lessons
            ],
            session=session,
        )
        lesson_id_map = {
            str(copy.previous_version_lesson_id): str(copy.id) for copy in copied_lessons
        }
        await self._timeline.copy_lesson_videos(lesson_id_map, session=session)

    async def list_sections(self, version_id: str) -> list[SectionWithLessons]:
        """List a version's sections, each with its lessons.

        Raises:
            NotFoundError: If the version does not exist.
        """
        version = await self._versions.get_by_id(version_id)
        if version is None:
            raise NotFoundError("listSections", {"repo_version_id": version_id})
        sections = await self._sections.list_for_versions([version_id])
        lessons = await self._lessons.list_for_sections([str(s.id) for s in sections])
        return [
            SectionWithLessons(
                section=section,
                lessons=[lesson for lesson in lessons if lesson.section_id == str(section.id)],
            )
            for section in sections
        ]

    async def get_version_structure(self, version_id: str) -> VersionSnapshot:
        """Snapshot a version down to clip texts.

        Raises:
            NotFoundError: If the version does not exist.
        """
        version = await self._versions.get_by_id(version_id)
        if version is None:
            raise NotFoundError("getVersionStructure", {"repo_version_id": version_id})
        return await self._snapshot(version)

    async def get_repo_structures(self, repo_id: str) -> list[VersionSnapshot]:
        """Snapshot every version of a repo, newest first."""
        versions = await self._versions.list_for_repo(repo_id)
        return [await self._snapshot(version) for version in versions]

    async def _snapshot(self, version: RepoVersionDocument) -> VersionSnapshot:
        sections = await self._sections.list_for_versions([str(version.id)])
        lessons = await self._lessons.list_for_sections([str(s.id) for s in sections])
        videos = await self._videos.list_for_lessons([str(lesson.id) for lesson in lessons])
        clips = await self._clips.list_for_videos([str(video.id) for video in videos])

        clips_by_video: dict[str, list[ClipSnapshot]] = {}
        for clip in clips:
            clips_by_video.setdefault(clip.video_id, []).append(
                ClipSnapshot(id=str(clip.id), text=clip.text)
            )
        videos_by_lesson: dict[str, list[VideoSnapshot]] = {}
        for video in videos:
            videos_by_lesson.setdefault(str(video.lesson_id), []).append(
                VideoSnapshot(
                    id=str(video.id),
                    path=video.path,
                    clips=clips_by_video.get(str(video.id), []),
                )
            )
        lessons_by_section: dict[str, list[LessonSnapshot]] = {}
        for lesson in lessons:
            lessons_by_section.setdefault(lesson.section_id, []).append(
                LessonSnapshot(
                    id=str(lesson.id),
                    path=lesson.path,
                    lesson_number=lesson.lesson_number,
                    previous_version_lesson_id=lesson.previous_version_lesson_id,
                    videos=videos_by_lesson.get(str(lesson.id), []),
                )
            )

        return VersionSnapshot(
            id=str(version.id),
            repo_id=version.repo_id,
            name=version.name,
            created_at=version.created_at,
            sequence=version.sequence,
            sections=[
                SectionSnapshot(
                    id=str(section.id),
                    title=section.title,
                    order=section.order,
                    previous_version_section_id=section.previous_version_section_id,
                    lessons=lessons_by_section.get(str(section.id), []),
                )
                for section in sections
            ],
        )
