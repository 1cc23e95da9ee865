"""Repository store: repos and their linear version history."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.common.errors import (
    AmbiguousRepoUpdateError,
    CannotDeleteNonLatestVersionError,
    CannotDeleteOnlyVersionError,
    NotFoundError,
    NotLatestVersionError,
    RepoPathDoesNotExistError,
)
from src.common.locks import KeyedLocks
from src.mongodb.client import MongoDBClient
from src.mongodb.repositories import RepoRepository, RepoVersionRepository
from src.mongodb.schemas import RepoDocument, RepoVersionDocument
from src.repo_store.config import RepoStoreConfig
from src.repo_store.filesystem import FileSystem, LocalFileSystem
from src.repo_store.parser import DirectoryRepoParser, RepoParser
from src.structure_store.schemas import NewLesson, NewSection
from src.structure_store.service import StructureStoreService

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # The driver hands back naive UTC datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def next_created_at(latest: RepoVersionDocument | None) -> datetime:
    """Creation time for a new version that sorts after `latest`.

    Mongo keeps millisecond precision, so the new time is at least one
    millisecond past the previous latest even if the clock went backwards.
    """
    now = datetime.now(UTC)
    if latest is None:
        return now
    return max(now, _as_utc(latest.created_at) + timedelta(milliseconds=1))


class RepoStoreService:
    """Owns repos and versions; guards the linear version chain.

    Structural version changes (copy, delete) serialize on a per-repo lock
    and re-read the latest version inside the unit of work that writes.
    """

    def __init__(
        self,
        db: MongoDBClient,
        repos: RepoRepository,
        versions: RepoVersionRepository,
        structure: StructureStoreService,
        filesystem: FileSystem,
        parser: RepoParser,
        config: RepoStoreConfig | None = None,
        repo_locks: KeyedLocks | None = None,
    ) -> None:
        self._db = db
        self._repos = repos
        self._versions = versions
        self._structure = structure
        self._filesystem = filesystem
        self._parser = parser
        self._config = config or RepoStoreConfig()
        self._repo_locks = repo_locks or KeyedLocks()

    @classmethod
    def create(
        cls,
        db: MongoDBClient,
        structure: StructureStoreService,
        filesystem: FileSystem | None = None,
        parser: RepoParser | None = None,
        config: RepoStoreConfig | None = None,
    ) -> "RepoStoreService":
        """Build the service and its repositories over one database client."""
        return cls(
            db=db,
            repos=RepoRepository.create(db),
            versions=RepoVersionRepository.create(db),
            structure=structure,
            filesystem=filesystem or LocalFileSystem(),
            parser=parser or DirectoryRepoParser(),
            config=config,
        )

    # ------------------------------------------------------------------
    # Repos
    # ------------------------------------------------------------------

    async def get_repo(
        self,
        repo_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> RepoDocument:
        repo = await self._repos.get_by_id(repo_id, session=session)
        if repo is None:
            raise NotFoundError("getRepo", {"repo_id": repo_id})
        return repo

    async def list_repos(self, archived: bool = False) -> list[RepoDocument]:
        return await self._repos.list_repos(archived=archived)

    async def create_repo(
        self,
        file_path: str,
        name: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> RepoDocument:
        """Create a repo pointing at an existing path.

        Raises:
            RepoPathDoesNotExistError: If `file_path` does not exist.
        """
        self._require_path(file_path)
        repo = await self._repos.insert(
            RepoDocument(file_path=file_path, name=name), session=session
        )
        logger.info("[repo=%s] Created %r at %s", repo.id, name, file_path)
        return repo

    async def add_repo(self, file_path: str, name: str) -> RepoDocument:
        """Create a repo, its first version and the structure parsed from disk.

        Raises:
            RepoPathDoesNotExistError: If `file_path` does not exist.
            InvalidOrderError: If a parsed lesson path has no numeric token.
        """
        self._require_path(file_path)
        parsed = await asyncio.to_thread(self._parser.parse_repo, file_path)

        repo: RepoDocument | None = None
        try:
            async with self._db.transaction() as session:
                repo = await self.create_repo(file_path, name, session=session)
                version = await self._insert_version(
                    str(repo.id), self._config.initial_version_name, None, session
                )
                sections = await self._structure.create_sections(
                    [NewSection(title=s.path, order=s.section_number) for s in parsed],
                    str(version.id),
                    session=session,
                )
                for section, parsed_section in zip(sections, parsed, strict=True):
                    await self._structure.create_lessons(
                        str(section.id),
                        [NewLesson(path=lesson.path) for lesson in parsed_section.lessons],
                        session=session,
                    )
        except Exception:
            if repo is not None and not self._db.config.transactions_enabled:
                logger.warning("[repo=%s] Rolling back partially added repo", repo.id)
                await self._delete_repo_contents(str(repo.id), None)
            raise

        logger.info(
            "[repo=%s] Added with %d sections from %s", repo.id, len(parsed), file_path
        )
        return repo

    async def rename_repo(self, repo_id: str, name: str) -> RepoDocument:
        repo = await self._repos.update_fields(repo_id, {"name": name})
        if repo is None:
            raise NotFoundError("renameRepo", {"repo_id": repo_id})
        return repo

    async def archive_repo(self, repo_id: str, archived: bool) -> RepoDocument:
        repo = await self._repos.update_fields(repo_id, {"archived": archived})
        if repo is None:
            raise NotFoundError("archiveRepo", {"repo_id": repo_id})
        logger.info("[repo=%s] archived=%s", repo_id, archived)
        return repo

    async def update_repo_file_path(self, repo_id: str, file_path: str) -> RepoDocument:
        """Point a repo at a new path.

        Raises:
            RepoPathDoesNotExistError: If the new path does not exist.
            NotFoundError: If the repo does not exist.
            AmbiguousRepoUpdateError: If other repos share the current path.
        """
        self._require_path(file_path)
        async with self._repo_locks.hold(repo_id), self._db.transaction() as session:
            repo = await self.get_repo(repo_id, session=session)
            sharing = await self._repos.count({"file_path": repo.file_path}, session=session)
            if sharing > 1:
                logger.warning(
                    "[repo=%s] %d repos share %s, refusing path update",
                    repo_id,
                    sharing,
                    repo.file_path,
                )
                raise AmbiguousRepoUpdateError(file_path=repo.file_path, repo_count=sharing)
            updated = await self._repos.update_fields(
                repo_id, {"file_path": file_path}, session=session
            )
        assert updated is not None
        logger.info("[repo=%s] Path %s -> %s", repo_id, repo.file_path, file_path)
        return updated

    async def delete_repo(self, repo_id: str) -> None:
        """Delete a repo with every version and everything beneath them."""
        async with self._repo_locks.hold(repo_id), self._db.transaction() as session:
            await self.get_repo(repo_id, session=session)
            await self._delete_repo_contents(repo_id, session)
        logger.info("[repo=%s] Deleted", repo_id)

    async def _delete_repo_contents(
        self,
        repo_id: str,
        session: AsyncIOMotorClientSession | None,
    ) -> None:
        versions = await self._versions.list_for_repo(repo_id, session=session)
        version_ids = [str(version.id) for version in versions]
        await self._structure.delete_version_contents(version_ids, session=session)
        await self._versions.delete_by_ids(version_ids, session=session)
        await self._repos.delete_by_ids([repo_id], session=session)

    def _require_path(self, file_path: str) -> None:
        if not self._filesystem.exists(file_path):
            logger.warning("Repo path does not exist: %s", file_path)
            raise RepoPathDoesNotExistError(file_path)

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def get_version(self, version_id: str) -> RepoVersionDocument:
        version = await self._versions.get_by_id(version_id)
        if version is None:
            raise NotFoundError("getVersion", {"version_id": version_id})
        return version

    async def list_versions(self, repo_id: str) -> list[RepoVersionDocument]:
        """List a repo's versions, newest first."""
        await self.get_repo(repo_id)
        return await self._versions.list_for_repo(repo_id)

    async def get_latest_version(self, repo_id: str) -> RepoVersionDocument:
        await self.get_repo(repo_id)
        latest = await self._versions.get_latest(repo_id)
        if latest is None:
            raise NotFoundError("getLatestVersion", {"repo_id": repo_id})
        return latest

    async def create_version(self, repo_id: str, name: str) -> RepoVersionDocument:
        """Append an empty version to a repo's history.

        Raises:
            NotFoundError: If the repo does not exist.
        """
        async with self._repo_locks.hold(repo_id), self._db.transaction() as session:
            await self.get_repo(repo_id, session=session)
            latest = await self._versions.get_latest(repo_id, session=session)
            return await self._insert_version(repo_id, name, latest, session)

    async def rename_version(self, version_id: str, name: str) -> RepoVersionDocument:
        version = await self._versions.update_fields(version_id, {"name": name})
        if version is None:
            raise NotFoundError("renameVersion", {"version_id": version_id})
        return version

    async def copy_version_structure(
        self,
        source_version_id: str,
        repo_id: str,
        new_version_name: str,
    ) -> RepoVersionDocument:
        """Branch a new latest version off the current latest one.

        Sections, lessons, lesson videos and their live clips are copied with
        fresh ids. Either everything is copied or nothing is.

        Raises:
            NotFoundError: If the repo does not exist.
            NotLatestVersionError: If `source_version_id` is not the repo's
                latest version.
        """
        created: RepoVersionDocument | None = None
        async with self._repo_locks.hold(repo_id):
            try:
                async with self._db.transaction() as session:
                    await self.get_repo(repo_id, session=session)
                    latest = await self._versions.get_latest(repo_id, session=session)
                    if latest is None or str(latest.id) != source_version_id:
                        latest_id = str(latest.id) if latest is not None else ""
                        logger.warning(
                            "[repo=%s] Refusing to branch from %s, latest is %s",
                            repo_id,
                            source_version_id,
                            latest_id,
                        )
                        raise NotLatestVersionError(source_version_id, latest_id)

                    created = await self._insert_version(
                        repo_id, new_version_name, latest, session
                    )
                    await self._structure.copy_version_contents(
                        source_version_id, str(created.id), session=session
                    )
            except Exception:
                if created is not None and not self._db.config.transactions_enabled:
                    logger.warning(
                        "[repo=%s] Removing partially copied version %s", repo_id, created.id
                    )
                    await self._structure.delete_version_contents([str(created.id)])
                    await self._versions.delete_by_ids([str(created.id)])
                raise

        assert created is not None
        logger.info(
            "[repo=%s] Copied version %s into %s (%s)",
            repo_id,
            source_version_id,
            created.id,
            new_version_name,
        )
        return created

    async def delete_repo_version(self, version_id: str) -> RepoVersionDocument:
        """Delete the latest version of a repo and everything beneath it.

        Returns:
            The version that is now the latest.

        Raises:
            NotFoundError: If the version does not exist.
            CannotDeleteOnlyVersionError: If it is the repo's only version.
            CannotDeleteNonLatestVersionError: If a newer version exists.
        """
        version = await self.get_version(version_id)
        repo_id = version.repo_id

        async with self._repo_locks.hold(repo_id), self._db.transaction() as session:
            versions = await self._versions.list_for_repo(repo_id, session=session)
            if not any(str(v.id) == version_id for v in versions):
                raise NotFoundError("deleteRepoVersion", {"version_id": version_id})
            if len(versions) == 1:
                raise CannotDeleteOnlyVersionError(version_id=version_id, repo_id=repo_id)
            if str(versions[0].id) != version_id:
                raise CannotDeleteNonLatestVersionError(
                    version_id=version_id, latest_version_id=str(versions[0].id)
                )

            # Version row first: without transactions a failed cascade leaves
            # rows no version reaches instead of a half-emptied latest version.
            await self._versions.delete_by_ids([version_id], session=session)
            try:
                await self._structure.delete_version_contents([version_id], session=session)
            except Exception:
                if not self._db.config.transactions_enabled:
                    logger.exception(
                        "[repo=%s] Version %s deleted, its contents only partly",
                        repo_id,
                        version_id,
                    )
                raise

        new_latest = versions[1]
        logger.info(
            "[repo=%s] Deleted version %s, latest is now %s",
            repo_id,
            version_id,
            new_latest.id,
        )
        return new_latest

    async def _insert_version(
        self,
        repo_id: str,
        name: str,
        latest: RepoVersionDocument | None,
        session: AsyncIOMotorClientSession | None,
    ) -> RepoVersionDocument:
        version = await self._versions.insert(
            RepoVersionDocument(
                repo_id=repo_id,
                name=name,
                sequence=latest.sequence + 1 if latest is not None else 0,
                created_at=next_created_at(latest),
            ),
            session=session,
        )
        logger.info("[repo=%s] Created version %s (%s)", repo_id, version.id, name)
        return version
