"""HTTP-level tests: routing, payload shapes and error mapping."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.main import create_app
from src.common.errors import RenderingToolError
from src.timeline.schemas import NewClip


@pytest.fixture
async def client(services):
    app = create_app(services)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _add_repo(client) -> dict:
    response = await client.post(
        "/api/repos", json={"file_path": "/courses/typescript", "name": "TypeScript"}
    )
    assert response.status_code == 200
    return response.json()


async def _latest_version(client, repo_id: str) -> dict:
    response = await client.get(f"/api/repos/{repo_id}/versions/latest")
    assert response.status_code == 200
    return response.json()


async def _first_lesson(client, repo_id: str) -> dict:
    version = await _latest_version(client, repo_id)
    response = await client.get(f"/api/versions/{version['id']}/sections")
    return response.json()[0]["lessons"][0]


# ===== Health =====


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ===== Repos and versions =====


async def test_add_repo_and_list_structure(client):
    repo = await _add_repo(client)
    assert repo["name"] == "TypeScript"

    version = await _latest_version(client, repo["id"])
    response = await client.get(f"/api/versions/{version['id']}/sections")

    sections = response.json()
    assert [s["title"] for s in sections] == ["01-basics", "02-functions"]
    assert [l["path"] for l in sections[0]["lessons"]] == ["01-intro", "02-variables"]


async def test_add_repo_with_missing_path(client):
    response = await client.post("/api/repos", json={"file_path": "/nope", "name": "x"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "RepoPathDoesNotExistError"
    assert body["details"] == {"file_path": "/nope"}


async def test_unknown_repo_is_404(client):
    response = await client.get("/api/repos/0123456789abcdef01234567")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


async def test_version_chain_over_http(client):
    repo = await _add_repo(client)
    v1 = await _latest_version(client, repo["id"])

    response = await client.post(
        f"/api/repos/{repo['id']}/versions",
        json={"source_version_id": v1["id"], "name": "v2"},
    )
    assert response.status_code == 200
    v2 = response.json()

    stale = await client.post(
        f"/api/repos/{repo['id']}/versions",
        json={"source_version_id": v1["id"], "name": "v3"},
    )
    assert stale.status_code == 409
    assert stale.json()["details"]["latest_version_id"] == v2["id"]

    refused = await client.delete(f"/api/versions/{v1['id']}")
    assert refused.status_code == 409
    assert refused.json()["error"] == "CannotDeleteNonLatestVersionError"

    deleted = await client.delete(f"/api/versions/{v2['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["id"] == v1["id"]

    only = await client.delete(f"/api/versions/{v1['id']}")
    assert only.status_code == 409
    assert only.json()["error"] == "CannotDeleteOnlyVersionError"


async def test_empty_version_becomes_latest(client):
    repo = await _add_repo(client)

    response = await client.post(f"/api/repos/{repo['id']}/versions/empty", json={"name": "draft"})
    assert response.status_code == 200

    latest = await _latest_version(client, repo["id"])
    assert latest["id"] == response.json()["id"]
    assert (await client.get(f"/api/versions/{latest['id']}/sections")).json() == []


async def test_version_structure(client):
    repo = await _add_repo(client)
    version = await _latest_version(client, repo["id"])

    response = await client.get(f"/api/versions/{version['id']}/structure")

    body = response.json()
    assert body["id"] == version["id"]
    assert [s["title"] for s in body["sections"]] == ["01-basics", "02-functions"]
    assert [l["path"] for l in body["sections"][0]["lessons"]] == ["01-intro", "02-variables"]


async def test_ambiguous_path_update(client):
    repo = await _add_repo(client)
    await _add_repo(client)

    response = await client.patch(
        f"/api/repos/{repo['id']}/file-path", json={"file_path": "/courses/moved"}
    )

    assert response.status_code == 409
    assert response.json()["details"] == {"file_path": "/courses/typescript", "repo_count": 2}


async def test_archive_repo_and_list(client):
    repo = await _add_repo(client)

    response = await client.patch(f"/api/repos/{repo['id']}/archived", json={"archived": True})
    assert response.json()["archived"] is True

    assert (await client.get("/api/repos")).json() == []
    archived = (await client.get("/api/repos", params={"archived": True})).json()
    assert [r["id"] for r in archived] == [repo["id"]]


async def test_changelog(client):
    repo = await _add_repo(client)
    v1 = await _latest_version(client, repo["id"])
    await client.post(
        f"/api/repos/{repo['id']}/versions",
        json={"source_version_id": v1["id"], "name": "v2"},
    )

    response = await client.get(f"/api/repos/{repo['id']}/changelog")

    body = response.json()
    assert [e["version_name"] for e in body["entries"]] == ["v1", "v2"]
    assert body["entries"][1]["lines"] == ["No significant changes."]
    assert body["markdown"].startswith("# Changelog")


# ===== Lessons =====


async def test_update_lesson_rejects_unnumbered_path(client):
    repo = await _add_repo(client)
    lesson = await _first_lesson(client, repo["id"])

    renamed = await client.patch(f"/api/lessons/{lesson['id']}", json={"path": "5-intro-revised"})
    assert renamed.json()["lesson_number"] == 5

    response = await client.patch(f"/api/lessons/{lesson['id']}", json={"path": "intro"})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidOrderError"


async def test_update_lesson_rejects_mismatched_number(client):
    repo = await _add_repo(client)
    lesson = await _first_lesson(client, repo["id"])

    response = await client.patch(
        f"/api/lessons/{lesson['id']}", json={"path": "5-intro", "lesson_number": 7}
    )

    assert response.status_code == 422
    assert response.json()["details"] == {"path": "5-intro", "lesson_number": 7}


async def test_update_lesson_rejects_unsafe_characters(client):
    repo = await _add_repo(client)
    lesson = await _first_lesson(client, repo["id"])

    response = await client.patch(f"/api/lessons/{lesson['id']}", json={"path": "01-a/b"})

    assert response.status_code == 422


# ===== Videos and clips =====


async def test_timeline_over_http(client):
    repo = await _add_repo(client)
    lesson = await _first_lesson(client, repo["id"])
    video = (
        await client.post("/api/videos", json={"path": "problem", "lesson_id": lesson["id"]})
    ).json()

    clips = (
        await client.post(
            f"/api/videos/{video['id']}/clips",
            json={
                "clips": [
                    {"input_video": "a.mkv", "start_time": 0, "end_time": 2},
                    {"input_video": "a.mkv", "start_time": 2, "end_time": 4},
                ]
            },
        )
    ).json()
    section = await client.post(
        f"/api/videos/{video['id']}/clip-sections/insert",
        json={
            "name": "Part two",
            "insertion_point": {"type": "after-clip", "clip_id": clips[0]["id"]},
        },
    )
    assert section.status_code == 200

    timeline = (await client.get(f"/api/videos/{video['id']}")).json()

    assert [item["type"] for item in timeline["items"]] == ["clip", "clip-section", "clip"]
    assert timeline["items"][2]["clip_section_id"] == section.json()["id"]
    assert timeline["items"][0]["clip_section_id"] is None


async def test_invalid_clip_range_is_422(client, standalone_video):
    response = await client.post(
        f"/api/videos/{standalone_video.id}/clips",
        json={"clips": [{"input_video": "a.mkv", "start_time": 3, "end_time": 3}]},
    )
    assert response.status_code == 422
    assert response.json()["details"] == {"source_start_time": 3, "source_end_time": 3}


async def test_lesson_video_archive_is_409(client, video):
    response = await client.patch(f"/api/videos/{video.id}/archived", json={"archived": True})
    assert response.status_code == 409
    assert response.json()["error"] == "CannotArchiveLessonVideoError"


async def test_second_lesson_video_is_409(client, video):
    response = await client.post(
        "/api/videos", json={"path": "solution", "lesson_id": video.lesson_id}
    )
    assert response.status_code == 409
    assert response.json()["details"] == {"lesson_id": video.lesson_id, "video_id": str(video.id)}


async def test_standalone_videos(client):
    created = await client.post("/api/videos", json={"path": "demo"})
    assert created.json()["lesson_id"] is None

    listed = (await client.get("/api/videos/standalone")).json()
    assert [v["id"] for v in listed] == [created.json()["id"]]


async def test_reorder_and_archive_clip(client, standalone_video, timeline):
    a, b = await timeline.append_clips(
        str(standalone_video.id),
        [
            NewClip(input_video="a.mkv", start_time=0, end_time=1),
            NewClip(input_video="b.mkv", start_time=0, end_time=1),
        ],
    )

    moved = await client.post(f"/api/clips/{b.id}/reorder", json={"direction": "up"})
    assert moved.status_code == 200
    assert moved.json()["order"] < a.order

    archived = await client.post(f"/api/clips/{a.id}/archive")
    assert archived.json()["archived"] is True

    timeline_body = (await client.get(f"/api/videos/{standalone_video.id}")).json()
    assert [item["id"] for item in timeline_body["items"]] == [str(b.id)]


async def test_create_clip_section_rejects_malformed_order(client, standalone_video):
    response = await client.post(
        f"/api/videos/{standalone_video.id}/clip-sections",
        json={"name": "Bad", "order": "a00"},
    )
    assert response.status_code == 422


async def test_transcribe_and_export_over_http(client, standalone_video, timeline, tool):
    [clip] = await timeline.append_clips(
        str(standalone_video.id), [NewClip(input_video="a.mkv", start_time=0, end_time=2)]
    )
    tool.transcripts = {str(clip.id): ["Hello."]}

    transcribed = await client.post("/api/clips/transcribe", json={"clip_ids": [str(clip.id)]})
    assert [c["text"] for c in transcribed.json()] == ["Hello."]

    exported = await client.post(f"/api/videos/{standalone_video.id}/export", json={})
    assert exported.json()["success"] is True
    assert tool.export_requests[0].clips[0].duration == 2.5


async def test_rendering_tool_failure_is_502(client, standalone_video, tool):
    tool.error = RenderingToolError("get-latest-obs-clips", "OBS is not running")

    response = await client.post(f"/api/videos/{standalone_video.id}/append-from-obs", json={})

    assert response.status_code == 502
    assert response.json()["details"] == {
        "operation": "get-latest-obs-clips",
        "message": "OBS is not running",
    }
