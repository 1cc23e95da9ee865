"""Video & clip store: the clip timeline state machine.

Clips and clip sections of one video share a single ordering space of
fractional string keys (see `src.common.ordering`). Every placement computes
its key from a fresh read of the video's items, taken under the video's lock,
so two callers targeting the same neighbour never receive equal keys.

Archived items keep their keys. New keys are generated against the full item
list, archived items included, so unarchiving never produces a collision.
"""

import logging
from bisect import bisect_left, bisect_right
from collections.abc import Sequence
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorClientSession

from src.common.errors import (
    CannotArchiveLessonVideoError,
    InvalidClipRangeError,
    LessonAlreadyHasVideoError,
    NotFoundError,
)
from src.common.locks import KeyedLocks
from src.common.ordering import generate_key_between, generate_n_keys_between
from src.mongodb.client import MongoDBClient
from src.mongodb.repositories import (
    ClipRepository,
    ClipSectionRepository,
    LessonRepository,
    VideoRepository,
)
from src.mongodb.schemas import ClipDocument, ClipSectionDocument, VideoDocument
from src.timeline.schemas import (
    AfterClipInsertionPoint,
    ClipUpdate,
    InsertionPoint,
    NewClip,
    RelativePosition,
    ReorderDirection,
    TimelineClip,
    TimelineClipSection,
    TimelineItem,
    TimelineItemType,
    VideoTimeline,
)

logger = logging.getLogger(__name__)

OrderedDocument = ClipDocument | ClipSectionDocument


def merge_timeline(
    clips: Sequence[ClipDocument],
    clip_sections: Sequence[ClipSectionDocument],
    with_archived: bool = False,
) -> list[TimelineItem]:
    """Merge a video's clips and clip sections into timeline order.

    Each clip is annotated with the id of the closest clip section before it.
    Unless `with_archived` is set, archived items are dropped, and so are the
    clips that sit under an archived section.

    Args:
        clips: Every clip of the video, archived or not.
        clip_sections: Every clip section of the video, archived or not.
        with_archived: Keep archived items in the result.

    Returns:
        The timeline items sorted by order key.
    """
    entries: list[OrderedDocument] = sorted(
        [*clip_sections, *clips],
        key=lambda doc: (doc.order, isinstance(doc, ClipDocument), str(doc.id)),
    )

    items: list[TimelineItem] = []
    current_section: ClipSectionDocument | None = None
    for entry in entries:
        if isinstance(entry, ClipSectionDocument):
            current_section = entry
            if with_archived or not entry.archived:
                items.append(TimelineClipSection(clip_section=entry))
            continue

        hidden = entry.archived or (
            current_section is not None and current_section.archived
        )
        if with_archived or not hidden:
            items.append(
                TimelineClip(
                    clip=entry,
                    clip_section_id=str(current_section.id) if current_section else None,
                )
            )
    return items


def _key_after(keys: list[str], anchor: str) -> str:
    """Key between `anchor` and the next key in sorted `keys`."""
    index = bisect_right(keys, anchor)
    upper = keys[index] if index < len(keys) else None
    return generate_key_between(anchor, upper)


def _key_before(keys: list[str], anchor: str) -> str:
    """Key between the previous key in sorted `keys` and `anchor`."""
    index = bisect_left(keys, anchor)
    lower = keys[index - 1] if index > 0 else None
    return generate_key_between(lower, anchor)


class TimelineService:
    """Owns videos, clip sections and clips."""

    def __init__(
        self,
        db: MongoDBClient,
        videos: VideoRepository,
        clips: ClipRepository,
        clip_sections: ClipSectionRepository,
        lessons: LessonRepository,
        video_locks: KeyedLocks | None = None,
    ) -> None:
        self._db = db
        self._videos = videos
        self._clips = clips
        self._clip_sections = clip_sections
        self._lessons = lessons
        self._video_locks = video_locks or KeyedLocks()

    @classmethod
    def create(cls, db: MongoDBClient) -> "TimelineService":
        """Build the service and its repositories over one database client."""
        return cls(
            db=db,
            videos=VideoRepository.create(db),
            clips=ClipRepository.create(db),
            clip_sections=ClipSectionRepository.create(db),
            lessons=LessonRepository.create(db),
        )

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def get_video(
        self,
        video_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> VideoDocument:
        video = await self._videos.get_by_id(video_id, session=session)
        if video is None:
            raise NotFoundError("getVideo", {"video_id": video_id})
        return video

    async def create_video(
        self,
        lesson_id: str,
        path: str,
        original_footage_path: str = "",
    ) -> VideoDocument:
        """Create the video of a lesson; a lesson has at most one.

        Raises:
            NotFoundError: If the lesson does not exist.
            LessonAlreadyHasVideoError: If the lesson already has a video.
        """
        async with self._video_locks.hold(lesson_id), self._db.transaction() as session:
            lesson = await self._lessons.get_by_id(lesson_id, session=session)
            if lesson is None:
                raise NotFoundError("createVideo", {"lesson_id": lesson_id})
            existing = await self._videos.list_for_lessons([lesson_id], session=session)
            if existing:
                logger.warning(
                    "[lesson=%s] Already has video %s", lesson_id, existing[0].id
                )
                raise LessonAlreadyHasVideoError(
                    lesson_id=lesson_id, video_id=str(existing[0].id)
                )
            video = await self._videos.insert(
                VideoDocument(
                    lesson_id=lesson_id,
                    path=path,
                    original_footage_path=original_footage_path,
                ),
                session=session,
            )
        logger.info("[video=%s] Created for lesson %s", video.id, lesson_id)
        return video

    async def create_standalone_video(self, path: str) -> VideoDocument:
        """Create a video that belongs to no lesson."""
        video = await self._videos.insert(VideoDocument(lesson_id=None, path=path))
        logger.info("[video=%s] Created standalone video %s", video.id, path)
        return video

    async def list_standalone_videos(self, archived: bool = False) -> list[VideoDocument]:
        return await self._videos.list_standalone(archived=archived)

    async def rename_video(self, video_id: str, path: str) -> VideoDocument:
        video = await self._videos.update_fields(video_id, {"path": path})
        if video is None:
            raise NotFoundError("renameVideo", {"video_id": video_id})
        return video

    async def update_video_archive_status(
        self,
        video_id: str,
        archived: bool,
    ) -> VideoDocument:
        """Archive or unarchive a standalone video.

        Raises:
            NotFoundError: If the video does not exist.
            CannotArchiveLessonVideoError: If the video is attached to a lesson.
        """
        async with self._db.transaction() as session:
            video = await self.get_video(video_id, session=session)
            if video.lesson_id is not None:
                logger.warning(
                    "[video=%s] Refusing to archive lesson-bound video", video_id
                )
                raise CannotArchiveLessonVideoError(
                    video_id=video_id, lesson_id=video.lesson_id
                )
            updated = await self._videos.update_fields(
                video_id, {"archived": archived}, session=session
            )
        assert updated is not None
        return updated

    async def delete_video(self, video_id: str) -> None:
        """Delete a video with its clips and clip sections."""
        async with self._db.transaction() as session:
            await self.get_video(video_id, session=session)
            await self.delete_videos_cascade([video_id], session=session)
        logger.info("[video=%s] Deleted", video_id)

    async def delete_videos_cascade(
        self,
        video_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        """Delete videos and everything on their timelines."""
        if not video_ids:
            return 0
        await self._clips.delete_where({"video_id": {"$in": video_ids}}, session=session)
        await self._clip_sections.delete_where(
            {"video_id": {"$in": video_ids}}, session=session
        )
        return await self._videos.delete_by_ids(video_ids, session=session)

    async def delete_videos_for_lessons(
        self,
        lesson_ids: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        videos = await self._videos.list_for_lessons(lesson_ids, session=session)
        return await self.delete_videos_cascade(
            [str(video.id) for video in videos], session=session
        )

    async def copy_lesson_videos(
        self,
        lesson_id_map: dict[str, str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[VideoDocument]:
        """Copy the videos of lessons onto their copies.

        Each copy carries the visible timeline of its source with the same
        order keys: archived clips, archived clip sections and the clips under
        them stay behind. Every copied video links back through
        `previous_version_video_id`.

        Args:
            lesson_id_map: Source lesson id -> copied lesson id.
            session: Unit of work of the enclosing version copy.

        Returns:
            The copied videos.
        """
        source_videos = await self._videos.list_for_lessons(
            list(lesson_id_map), session=session
        )
        if not source_videos:
            return []

        copies = await self._videos.insert_many(
            [
                VideoDocument(
                    lesson_id=lesson_id_map[video.lesson_id],
                    path=video.path,
                    original_footage_path=video.original_footage_path,
                    archived=video.archived,
                    previous_version_video_id=str(video.id),
                )
                for video in source_videos
                if video.lesson_id is not None
            ],
            session=session,
        )
        video_id_map = {
            copy.previous_version_video_id: str(copy.id) for copy in copies
        }

        clips = await self._clips.list_for_videos(
            list(video_id_map), with_archived=True, session=session
        )
        clip_sections = await self._clip_sections.list_for_videos(
            list(video_id_map), with_archived=True, session=session
        )
        clips_by_video: dict[str, list[ClipDocument]] = {}
        for clip in clips:
            clips_by_video.setdefault(clip.video_id, []).append(clip)
        sections_by_video: dict[str, list[ClipSectionDocument]] = {}
        for section in clip_sections:
            sections_by_video.setdefault(section.video_id, []).append(section)

        new_clips: list[ClipDocument] = []
        new_sections: list[ClipSectionDocument] = []
        for source_id, copy_id in video_id_map.items():
            visible = merge_timeline(
                clips_by_video.get(source_id, []), sections_by_video.get(source_id, [])
            )
            for item in visible:
                if isinstance(item, TimelineClip):
                    new_clips.append(
                        item.clip.model_copy(update={"id": None, "video_id": copy_id})
                    )
                else:
                    new_sections.append(
                        item.clip_section.model_copy(
                            update={"id": None, "video_id": copy_id}
                        )
                    )

        await self._clips.insert_many(new_clips, session=session)
        await self._clip_sections.insert_many(new_sections, session=session)
        return copies

    # ------------------------------------------------------------------
    # Timeline reads
    # ------------------------------------------------------------------

    async def get_video_timeline(
        self,
        video_id: str,
        with_archived: bool = False,
    ) -> VideoTimeline:
        """Get a video with its clips and clip sections in timeline order.

        Raises:
            NotFoundError: If the video does not exist.
        """
        video = await self.get_video(video_id)
        clips, sections = await self._load_items(video_id)
        return VideoTimeline(
            video=video,
            items=merge_timeline(clips, sections, with_archived=with_archived),
        )

    async def get_clip(
        self,
        clip_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> ClipDocument:
        clip = await self._clips.get_by_id(clip_id, session=session)
        if clip is None:
            raise NotFoundError("getClip", {"clip_id": clip_id})
        return clip

    async def get_clips(self, clip_ids: list[str]) -> list[ClipDocument]:
        """Get clips by id, skipping unknown ids."""
        return await self._clips.get_many(clip_ids)

    async def get_clip_section(
        self,
        clip_section_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> ClipSectionDocument:
        section = await self._clip_sections.get_by_id(clip_section_id, session=session)
        if section is None:
            raise NotFoundError("getClipSection", {"clip_section_id": clip_section_id})
        return section

    async def _load_items(
        self,
        video_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> tuple[list[ClipDocument], list[ClipSectionDocument]]:
        clips = await self._clips.list_for_videos(
            [video_id], with_archived=True, session=session
        )
        sections = await self._clip_sections.list_for_videos(
            [video_id], with_archived=True, session=session
        )
        return clips, sections

    async def _all_keys(
        self,
        video_id: str,
        exclude_id: str | None = None,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[str]:
        clips, sections = await self._load_items(video_id, session=session)
        return sorted(
            doc.order for doc in [*clips, *sections] if str(doc.id) != exclude_id
        )

    # ------------------------------------------------------------------
    # Clip sections
    # ------------------------------------------------------------------

    async def create_clip_section(
        self,
        video_id: str,
        name: str,
        order: str,
    ) -> ClipSectionDocument:
        """Create a clip section at a caller-supplied order key."""
        async with self._video_locks.hold(video_id), self._db.transaction() as session:
            await self.get_video(video_id, session=session)
            section = await self._clip_sections.insert(
                ClipSectionDocument(video_id=video_id, name=name, order=order),
                session=session,
            )
        logger.info("[video=%s] Created clip section %r at %s", video_id, name, order)
        return section

    async def create_clip_section_at_insertion_point(
        self,
        video_id: str,
        name: str,
        insertion_point: InsertionPoint,
    ) -> ClipSectionDocument:
        """Create a clip section at the start or right after a clip.

        Raises:
            NotFoundError: If the video does not exist, or the clip does not
                belong to it.
        """
        async with self._video_locks.hold(video_id), self._db.transaction() as session:
            await self.get_video(video_id, session=session)
            keys = await self._all_keys(video_id, session=session)
            order = await self._key_for_insertion_point(
                video_id, insertion_point, keys, session=session
            )
            section = await self._clip_sections.insert(
                ClipSectionDocument(video_id=video_id, name=name, order=order),
                session=session,
            )
        logger.info(
            "[video=%s] Created clip section %r at %s (%s)",
            video_id,
            name,
            order,
            insertion_point.type,
        )
        return section

    async def create_clip_section_at_position(
        self,
        video_id: str,
        name: str,
        position: RelativePosition,
        target_id: str,
        target_type: TimelineItemType,
    ) -> ClipSectionDocument:
        """Create a clip section directly before or after a timeline item.

        Raises:
            NotFoundError: If the video does not exist, or the target item is
                not on its timeline.
        """
        async with self._video_locks.hold(video_id), self._db.transaction() as session:
            await self.get_video(video_id, session=session)
            target: OrderedDocument | None
            if target_type == TimelineItemType.CLIP:
                target = await self._clips.get_by_id(target_id, session=session)
            else:
                target = await self._clip_sections.get_by_id(target_id, session=session)
            if target is None or target.video_id != video_id:
                raise NotFoundError(
                    "createClipSectionAtPosition",
                    {
                        "video_id": video_id,
                        "target_id": target_id,
                        "target_type": str(target_type),
                    },
                )

            keys = await self._all_keys(video_id, session=session)
            if position == RelativePosition.BEFORE:
                order = _key_before(keys, target.order)
            else:
                order = _key_after(keys, target.order)
            section = await self._clip_sections.insert(
                ClipSectionDocument(video_id=video_id, name=name, order=order),
                session=session,
            )
        return section

    async def update_clip_section(self, clip_section_id: str, name: str) -> ClipSectionDocument:
        section = await self._clip_sections.update_fields(clip_section_id, {"name": name})
        if section is None:
            raise NotFoundError("updateClipSection", {"clip_section_id": clip_section_id})
        return section

    async def archive_clip_section(self, clip_section_id: str) -> ClipSectionDocument:
        """Soft-delete a clip section; it and its clips drop out of the timeline."""
        return await self._set_section_archived(clip_section_id, True)

    async def unarchive_clip_section(self, clip_section_id: str) -> ClipSectionDocument:
        return await self._set_section_archived(clip_section_id, False)

    async def _set_section_archived(
        self,
        clip_section_id: str,
        archived: bool,
    ) -> ClipSectionDocument:
        section = await self._clip_sections.update_fields(
            clip_section_id, {"archived": archived}
        )
        if section is None:
            raise NotFoundError(
                "archiveClipSection", {"clip_section_id": clip_section_id}
            )
        logger.info(
            "[video=%s] Clip section %s archived=%s",
            section.video_id,
            clip_section_id,
            archived,
        )
        return section

    async def reorder_clip_section(
        self,
        clip_section_id: str,
        direction: ReorderDirection,
    ) -> ClipSectionDocument:
        """Move a clip section past its visible neighbour.

        At either end of the timeline this is a no-op and the unchanged
        section is returned.
        """
        section = await self.get_clip_section(clip_section_id)
        moved = await self._reorder(section.video_id, clip_section_id, direction)
        assert isinstance(moved, ClipSectionDocument)
        return moved

    # ------------------------------------------------------------------
    # Clips
    # ------------------------------------------------------------------

    async def reorder_clip(
        self,
        clip_id: str,
        direction: ReorderDirection,
    ) -> ClipDocument:
        """Move a clip past its visible neighbour; a no-op at either end."""
        clip = await self.get_clip(clip_id)
        moved = await self._reorder(clip.video_id, clip_id, direction)
        assert isinstance(moved, ClipDocument)
        return moved

    async def archive_clip(self, clip_id: str) -> ClipDocument:
        clip = await self._clips.update_fields(clip_id, {"archived": True})
        if clip is None:
            raise NotFoundError("archiveClip", {"clip_id": clip_id})
        logger.info("[video=%s] Archived clip %s", clip.video_id, clip_id)
        return clip

    async def append_clips(
        self,
        video_id: str,
        clips: list[NewClip],
        insertion_point: InsertionPoint | None = None,
    ) -> list[ClipDocument]:
        """Add freshly captured clips to a video's timeline.

        Without an insertion point the clips go after every existing item.
        Input order is preserved in the generated keys.

        Raises:
            InvalidClipRangeError: If any clip ends at or before its start.
            NotFoundError: If the video, or the insertion point's clip, is
                not found.
        """
        for clip in clips:
            if clip.end_time <= clip.start_time:
                raise InvalidClipRangeError(clip.start_time, clip.end_time)
        if not clips:
            return []

        async with self._video_locks.hold(video_id), self._db.transaction() as session:
            await self.get_video(video_id, session=session)
            keys = await self._all_keys(video_id, session=session)

            if insertion_point is None:
                lower, upper = (keys[-1] if keys else None), None
            elif isinstance(insertion_point, AfterClipInsertionPoint):
                anchor = await self._clip_on_video(
                    video_id, insertion_point.clip_id, session=session
                )
                index = bisect_right(keys, anchor.order)
                lower = anchor.order
                upper = keys[index] if index < len(keys) else None
            else:
                lower, upper = None, (keys[0] if keys else None)

            orders = generate_n_keys_between(lower, upper, len(clips))
            inserted = await self._clips.insert_many(
                [
                    ClipDocument(
                        video_id=video_id,
                        video_filename=clip.input_video,
                        source_start_time=clip.start_time,
                        source_end_time=clip.end_time,
                        beat_type=clip.beat_type,
                        order=order,
                    )
                    for clip, order in zip(clips, orders, strict=True)
                ],
                session=session,
            )
        logger.info("[video=%s] Appended %d clips", video_id, len(inserted))
        return inserted

    async def update_clip(self, clip_id: str, update: ClipUpdate) -> ClipDocument:
        """Apply a partial update to a clip (beat type, transcript, ...)."""
        fields = update.model_dump(exclude_none=True)
        if not fields:
            return await self.get_clip(clip_id)
        clip = await self._clips.update_fields(clip_id, fields)
        if clip is None:
            raise NotFoundError("updateClip", {"clip_id": clip_id})
        return clip

    async def set_clip_transcripts(
        self,
        transcripts: dict[str, tuple[str, datetime]],
    ) -> list[ClipDocument]:
        """Write transcript text and timestamps for several clips in one unit.

        Args:
            transcripts: Clip id -> (text, transcribed_at).

        Returns:
            The updated clips; ids that no longer exist are skipped.
        """
        updated: list[ClipDocument] = []
        async with self._db.transaction() as session:
            for clip_id, (text, transcribed_at) in transcripts.items():
                clip = await self._clips.update_fields(
                    clip_id,
                    {"text": text, "transcribed_at": transcribed_at},
                    session=session,
                )
                if clip is not None:
                    updated.append(clip)
        return updated

    # ------------------------------------------------------------------
    # Ordering helpers
    # ------------------------------------------------------------------

    async def _key_for_insertion_point(
        self,
        video_id: str,
        insertion_point: InsertionPoint,
        keys: list[str],
        session: AsyncIOMotorClientSession | None = None,
    ) -> str:
        if isinstance(insertion_point, AfterClipInsertionPoint):
            anchor = await self._clip_on_video(
                video_id, insertion_point.clip_id, session=session
            )
            return _key_after(keys, anchor.order)
        return generate_key_between(None, keys[0] if keys else None)

    async def _clip_on_video(
        self,
        video_id: str,
        clip_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> ClipDocument:
        clip = await self._clips.get_by_id(clip_id, session=session)
        if clip is None or clip.video_id != video_id:
            raise NotFoundError(
                "insertionPoint", {"video_id": video_id, "clip_id": clip_id}
            )
        return clip

    async def _reorder(
        self,
        video_id: str,
        item_id: str,
        direction: ReorderDirection,
    ) -> OrderedDocument:
        async with self._video_locks.hold(video_id), self._db.transaction() as session:
            clips, sections = await self._load_items(video_id, session=session)
            visible = [
                item.clip if isinstance(item, TimelineClip) else item.clip_section
                for item in merge_timeline(clips, sections, with_archived=False)
            ]
            everything: list[OrderedDocument] = [*clips, *sections]
            current = next((doc for doc in everything if str(doc.id) == item_id), None)
            if current is None:
                raise NotFoundError("reorder", {"video_id": video_id, "item_id": item_id})

            position = next(
                (i for i, doc in enumerate(visible) if str(doc.id) == item_id), None
            )
            if position is None:
                return current
            neighbour_index = position - 1 if direction == ReorderDirection.UP else position + 1
            if neighbour_index < 0 or neighbour_index >= len(visible):
                return current

            neighbour = visible[neighbour_index]
            keys = sorted(doc.order for doc in everything if str(doc.id) != item_id)
            if direction == ReorderDirection.UP:
                order = _key_before(keys, neighbour.order)
            else:
                order = _key_after(keys, neighbour.order)

            repository = self._clips if isinstance(current, ClipDocument) else self._clip_sections
            moved = await repository.update_fields(item_id, {"order": order}, session=session)
        logger.info(
            "[video=%s] Moved %s %s to %s", video_id, item_id, direction.value, order
        )
        assert moved is not None
        return moved
