"""Tests for the repository store and the version chain."""

import asyncio

import pytest

from src.common.errors import (
    AmbiguousRepoUpdateError,
    CannotDeleteNonLatestVersionError,
    CannotDeleteOnlyVersionError,
    NotFoundError,
    NotLatestVersionError,
    RepoPathDoesNotExistError,
    UnknownDBServiceError,
)
from src.timeline.schemas import AfterClipInsertionPoint, NewClip


async def _count(db, collection: str) -> int:
    return await db.database[collection].count_documents({})


async def _collection_sizes(db) -> dict[str, int]:
    names = ["repos", "repo_versions", "sections", "lessons", "videos", "clips", "clip_sections"]
    return {name: await _count(db, name) for name in names}


# ===== Repos =====


async def test_create_repo_requires_existing_path(repo_store, db):
    with pytest.raises(RepoPathDoesNotExistError) as exc_info:
        await repo_store.create_repo("/nowhere", "Ghost")
    assert exc_info.value.file_path == "/nowhere"
    assert await _count(db, "repos") == 0


async def test_add_repo_creates_first_version_and_structure(repo, repo_store, structure):
    versions = await repo_store.list_versions(str(repo.id))
    assert [v.name for v in versions] == ["v1"]

    sections = await structure.list_sections(str(versions[0].id))
    assert [s.section.title for s in sections] == ["01-basics", "02-functions"]
    assert [l.path for l in sections[0].lessons] == ["01-intro", "02-variables"]
    assert [l.lesson_number for l in sections[0].lessons] == [1, 2]


async def test_add_repo_missing_path_writes_nothing(repo_store, db):
    with pytest.raises(RepoPathDoesNotExistError):
        await repo_store.add_repo("/does/not/exist", "Missing")
    assert await _count(db, "repos") == 0
    assert await _count(db, "repo_versions") == 0


async def test_rename_and_archive_are_idempotent(repo, repo_store):
    repo_id = str(repo.id)
    first = await repo_store.rename_repo(repo_id, "Renamed")
    second = await repo_store.rename_repo(repo_id, "Renamed")
    assert first.name == second.name == "Renamed"

    await repo_store.archive_repo(repo_id, True)
    archived = await repo_store.archive_repo(repo_id, True)
    assert archived.archived is True
    assert [r.id for r in await repo_store.list_repos(archived=True)] == [repo.id]
    assert await repo_store.list_repos() == []


async def test_rename_unknown_repo_is_not_found(repo_store):
    with pytest.raises(NotFoundError) as exc_info:
        await repo_store.rename_repo("0123456789abcdef01234567", "x")
    assert exc_info.value.params == {"repo_id": "0123456789abcdef01234567"}


async def test_malformed_id_is_not_found(repo_store):
    with pytest.raises(NotFoundError):
        await repo_store.get_repo("not-an-object-id")


async def test_update_repo_file_path(repo, repo_store):
    updated = await repo_store.update_repo_file_path(str(repo.id), "/courses/moved")
    assert updated.file_path == "/courses/moved"


async def test_update_repo_file_path_refuses_shared_path(repo, repo_store):
    await repo_store.create_repo("/courses/typescript", "Duplicate")

    with pytest.raises(AmbiguousRepoUpdateError) as exc_info:
        await repo_store.update_repo_file_path(str(repo.id), "/courses/moved")

    assert exc_info.value.repo_count == 2
    assert exc_info.value.file_path == "/courses/typescript"
    assert (await repo_store.get_repo(str(repo.id))).file_path == "/courses/typescript"


async def test_update_repo_file_path_checks_new_path(repo, repo_store):
    with pytest.raises(RepoPathDoesNotExistError):
        await repo_store.update_repo_file_path(str(repo.id), "/nowhere")


async def test_delete_repo_cascades(repo, repo_store, lesson, timeline, db):
    video = await timeline.create_video(str(lesson.id), "problem")
    await timeline.append_clips(
        str(video.id), [NewClip(input_video="a.mkv", start_time=0, end_time=2)]
    )
    version = await repo_store.get_latest_version(str(repo.id))
    await repo_store.copy_version_structure(str(version.id), str(repo.id), "v2")

    await repo_store.delete_repo(str(repo.id))

    assert await _collection_sizes(db) == dict.fromkeys(
        ["repos", "repo_versions", "sections", "lessons", "videos", "clips", "clip_sections"], 0
    )


# ===== Versions =====


async def test_create_version_sorts_after_existing(repo, repo_store):
    repo_id = str(repo.id)
    first = await repo_store.get_latest_version(repo_id)
    second = await repo_store.create_version(repo_id, "v2")
    third = await repo_store.create_version(repo_id, "v3")

    assert second.sequence > first.sequence
    assert third.sequence > second.sequence
    latest = await repo_store.get_latest_version(repo_id)
    assert latest.id == third.id
    assert [v.name for v in await repo_store.list_versions(repo_id)] == ["v3", "v2", "v1"]


async def test_copy_version_structure_deep_copies(repo, repo_store, structure):
    repo_id = str(repo.id)
    source = await repo_store.get_latest_version(repo_id)

    copy = await repo_store.copy_version_structure(str(source.id), repo_id, "v2")

    original = await structure.list_sections(str(source.id))
    copied = await structure.list_sections(str(copy.id))

    assert sorted((s.section.title, s.section.order) for s in original) == sorted(
        (s.section.title, s.section.order) for s in copied
    )
    original_lessons = [l for s in original for l in s.lessons]
    copied_lessons = [l for s in copied for l in s.lessons]
    assert sorted((l.path, l.lesson_number) for l in original_lessons) == sorted(
        (l.path, l.lesson_number) for l in copied_lessons
    )
    assert {s.section.id for s in original}.isdisjoint({s.section.id for s in copied})
    assert {l.id for l in original_lessons}.isdisjoint({l.id for l in copied_lessons})
    assert {l.previous_version_lesson_id for l in copied_lessons} == {
        str(l.id) for l in original_lessons
    }
    assert (await repo_store.get_latest_version(repo_id)).id == copy.id


async def test_copy_version_structure_copies_videos_and_live_clips(
    repo, repo_store, lesson, timeline, structure
):
    video = await timeline.create_video(str(lesson.id), "problem")
    kept, archived = await timeline.append_clips(
        str(video.id),
        [
            NewClip(input_video="a.mkv", start_time=0, end_time=2),
            NewClip(input_video="a.mkv", start_time=2, end_time=4),
        ],
    )
    await timeline.archive_clip(str(archived.id))
    source = await repo_store.get_latest_version(str(repo.id))

    copy = await repo_store.copy_version_structure(str(source.id), str(repo.id), "v2")

    snapshot = await structure.get_version_structure(str(copy.id))
    copied_videos = [v for s in snapshot.sections for l in s.lessons for v in l.videos]
    assert len(copied_videos) == 1
    assert copied_videos[0].id != str(video.id)
    timeline_copy = await timeline.get_video_timeline(copied_videos[0].id, with_archived=True)
    assert [c.source_start_time for c in timeline_copy.clips] == [kept.source_start_time]
    assert timeline_copy.video.previous_version_video_id == str(video.id)


async def test_copy_leaves_clips_under_archived_sections_behind(
    repo, repo_store, lesson, timeline, structure, export, tool
):
    video = await timeline.create_video(str(lesson.id), "problem")
    first, _ = await timeline.append_clips(
        str(video.id),
        [
            NewClip(input_video="a.mkv", start_time=0, end_time=2),
            NewClip(input_video="a.mkv", start_time=2, end_time=4),
        ],
    )
    section = await timeline.create_clip_section_at_insertion_point(
        str(video.id), "Outtakes", AfterClipInsertionPoint(clip_id=str(first.id))
    )
    await timeline.archive_clip_section(str(section.id))
    source = await repo_store.get_latest_version(str(repo.id))

    copy = await repo_store.copy_version_structure(str(source.id), str(repo.id), "v2")

    snapshot = await structure.get_version_structure(str(copy.id))
    [copied_video] = [v for s in snapshot.sections for l in s.lessons for v in l.videos]
    visible = await timeline.get_video_timeline(copied_video.id)
    everything = await timeline.get_video_timeline(copied_video.id, with_archived=True)
    assert [c.source_start_time for c in visible.clips] == [first.source_start_time]
    assert [c.source_start_time for c in everything.clips] == [first.source_start_time]
    assert everything.clip_sections == []

    await export.export_video(copied_video.id)
    assert [c.start_time for c in tool.export_requests[-1].clips] == [first.source_start_time]


async def test_copy_from_non_latest_version_fails_without_writes(repo, repo_store, db):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")
    before = await _collection_sizes(db)

    with pytest.raises(NotLatestVersionError) as exc_info:
        await repo_store.copy_version_structure(str(v1.id), repo_id, "v3")

    assert exc_info.value.source_version_id == str(v1.id)
    assert await _collection_sizes(db) == before


async def test_copy_failure_leaves_no_partial_version(repo, repo_store, structure, db, monkeypatch):
    repo_id = str(repo.id)
    source = await repo_store.get_latest_version(repo_id)
    before = await _collection_sizes(db)

    original_copy = structure.copy_version_contents

    async def failing_copy(source_version_id, target_version_id, session=None):
        await original_copy(source_version_id, target_version_id, session=session)
        raise UnknownDBServiceError(cause="connection reset")

    monkeypatch.setattr(structure, "copy_version_contents", failing_copy)

    with pytest.raises(UnknownDBServiceError):
        await repo_store.copy_version_structure(str(source.id), repo_id, "v2")

    assert await _collection_sizes(db) == before
    assert (await repo_store.get_latest_version(repo_id)).id == source.id


async def test_version_chain_scenario(repo, repo_store):
    """Branch v2 off v1, then only v2 can be deleted and v1 becomes latest."""
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    v2 = await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")
    assert (await repo_store.get_latest_version(repo_id)).id == v2.id

    with pytest.raises(CannotDeleteNonLatestVersionError) as exc_info:
        await repo_store.delete_repo_version(str(v1.id))
    assert exc_info.value.latest_version_id == str(v2.id)

    new_latest = await repo_store.delete_repo_version(str(v2.id))
    assert new_latest.id == v1.id
    assert (await repo_store.get_latest_version(repo_id)).id == v1.id


async def test_delete_returns_greatest_remaining_version(repo, repo_store):
    repo_id = str(repo.id)
    await repo_store.create_version(repo_id, "v2")
    v3 = await repo_store.create_version(repo_id, "v3")
    v4 = await repo_store.create_version(repo_id, "v4")

    new_latest = await repo_store.delete_repo_version(str(v4.id))

    remaining = await repo_store.list_versions(repo_id)
    assert new_latest.id == v3.id == remaining[0].id
    assert len(remaining) == 3


async def test_cannot_delete_only_version(repo, repo_store):
    only = await repo_store.get_latest_version(str(repo.id))
    with pytest.raises(CannotDeleteOnlyVersionError) as exc_info:
        await repo_store.delete_repo_version(str(only.id))
    assert exc_info.value.repo_id == str(repo.id)


async def test_delete_version_cascades_to_its_structure(repo, repo_store, structure, db):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    sections_before = await _count(db, "sections")
    v2 = await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")

    await repo_store.delete_repo_version(str(v2.id))

    assert await _count(db, "sections") == sections_before
    with pytest.raises(NotFoundError):
        await structure.list_sections(str(v2.id))


async def test_rename_version(repo, repo_store):
    version = await repo_store.get_latest_version(str(repo.id))
    renamed = await repo_store.rename_version(str(version.id), "First cut")
    assert renamed.name == "First cut"


async def test_failed_delete_cascade_never_leaves_a_half_emptied_latest(
    repo, repo_store, structure, monkeypatch
):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    v2 = await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")

    async def failing_delete(version_ids, session=None):
        raise UnknownDBServiceError(cause="connection reset")

    monkeypatch.setattr(structure, "delete_version_contents", failing_delete)

    with pytest.raises(UnknownDBServiceError):
        await repo_store.delete_repo_version(str(v2.id))

    assert (await repo_store.get_latest_version(repo_id)).id == v1.id
    assert len(await structure.list_sections(str(v1.id))) == 2


# ===== Concurrent callers =====


async def test_concurrent_copies_from_latest_keep_history_linear(repo, repo_store):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)

    results = await asyncio.gather(
        *(
            repo_store.copy_version_structure(str(v1.id), repo_id, f"v{index}")
            for index in range(2, 5)
        ),
        return_exceptions=True,
    )

    copied = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, NotLatestVersionError)]
    assert len(copied) == 1
    assert len(refused) == 2
    assert all(error.latest_version_id == str(copied[0].id) for error in refused)
    versions = await repo_store.list_versions(repo_id)
    assert [v.id for v in versions] == [copied[0].id, v1.id]


async def test_concurrent_deletes_of_latest_remove_it_once(repo, repo_store):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    v2 = await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")
    v3 = await repo_store.copy_version_structure(str(v2.id), repo_id, "v3")

    results = await asyncio.gather(
        repo_store.delete_repo_version(str(v3.id)),
        repo_store.delete_repo_version(str(v3.id)),
        return_exceptions=True,
    )

    deleted = [r for r in results if not isinstance(r, Exception)]
    assert [v.id for v in deleted] == [v2.id]
    assert sum(isinstance(r, NotFoundError) for r in results) == 1
    assert [v.id for v in await repo_store.list_versions(repo_id)] == [v2.id, v1.id]


async def test_concurrent_copy_and_delete_stay_consistent(repo, repo_store):
    repo_id = str(repo.id)
    v1 = await repo_store.get_latest_version(repo_id)
    v2 = await repo_store.copy_version_structure(str(v1.id), repo_id, "v2")

    copy_result, delete_result = await asyncio.gather(
        repo_store.copy_version_structure(str(v2.id), repo_id, "v3"),
        repo_store.delete_repo_version(str(v2.id)),
        return_exceptions=True,
    )

    versions = await repo_store.list_versions(repo_id)
    if isinstance(copy_result, Exception):
        # The delete won: the copy found its source gone
        assert isinstance(copy_result, NotLatestVersionError)
        assert delete_result.id == v1.id
        assert [v.id for v in versions] == [v1.id]
    else:
        # The copy won: v2 is no longer latest
        assert isinstance(delete_result, CannotDeleteNonLatestVersionError)
        assert [v.id for v in versions] == [copy_result.id, v2.id, v1.id]
