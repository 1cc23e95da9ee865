"""Video and timeline routes."""

import logging

from fastapi import APIRouter

from src.api.dependencies import Services
from src.api.schemas import (
    AppendClipsRequest,
    AppendFromObsRequest,
    ArchiveRequest,
    ClipResponse,
    ClipSectionResponse,
    CreateClipSectionRequest,
    CreateVideoRequest,
    ExportVideoRequest,
    InsertClipSectionRequest,
    PlaceClipSectionRequest,
    RenameVideoRequest,
    TimelineResponse,
    VideoResponse,
)
from src.export_coordinator.schemas import ExportResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=VideoResponse)
async def create_video(request: CreateVideoRequest, services: Services) -> VideoResponse:
    """Create a lesson video, or a standalone one when no lesson is given."""
    if request.lesson_id is None:
        video = await services.timeline.create_standalone_video(request.path)
    else:
        video = await services.timeline.create_video(
            request.lesson_id, request.path, request.original_footage_path
        )
    return VideoResponse.from_document(video)


@router.get("/standalone", response_model=list[VideoResponse])
async def list_standalone_videos(
    services: Services,
    archived: bool = False,
) -> list[VideoResponse]:
    videos = await services.timeline.list_standalone_videos(archived=archived)
    return [VideoResponse.from_document(video) for video in videos]


@router.get("/{video_id}", response_model=TimelineResponse)
async def get_video_timeline(
    video_id: str,
    services: Services,
    with_archived: bool = False,
) -> TimelineResponse:
    """Get a video with its clips and clip sections in timeline order."""
    timeline = await services.timeline.get_video_timeline(video_id, with_archived=with_archived)
    return TimelineResponse.from_timeline(timeline)


@router.patch("/{video_id}/path", response_model=VideoResponse)
async def rename_video(
    video_id: str,
    request: RenameVideoRequest,
    services: Services,
) -> VideoResponse:
    video = await services.timeline.rename_video(video_id, request.path)
    return VideoResponse.from_document(video)


@router.patch("/{video_id}/archived", response_model=VideoResponse)
async def update_video_archive_status(
    video_id: str,
    request: ArchiveRequest,
    services: Services,
) -> VideoResponse:
    """Archive a standalone video; lesson videos are refused."""
    video = await services.timeline.update_video_archive_status(video_id, request.archived)
    return VideoResponse.from_document(video)


@router.delete("/{video_id}")
async def delete_video(video_id: str, services: Services) -> dict[str, str]:
    await services.timeline.delete_video(video_id)
    return {"status": "deleted", "video_id": video_id}


@router.post("/{video_id}/clips", response_model=list[ClipResponse])
async def append_clips(
    video_id: str,
    request: AppendClipsRequest,
    services: Services,
) -> list[ClipResponse]:
    clips = await services.timeline.append_clips(
        video_id, request.clips, request.insertion_point
    )
    return [ClipResponse.from_document(clip) for clip in clips]


@router.post("/{video_id}/clip-sections", response_model=ClipSectionResponse)
async def create_clip_section(
    video_id: str,
    request: CreateClipSectionRequest,
    services: Services,
) -> ClipSectionResponse:
    section = await services.timeline.create_clip_section(
        video_id, request.name, request.order
    )
    return ClipSectionResponse.from_document(section)


@router.post("/{video_id}/clip-sections/insert", response_model=ClipSectionResponse)
async def insert_clip_section(
    video_id: str,
    request: InsertClipSectionRequest,
    services: Services,
) -> ClipSectionResponse:
    """Create a clip section at the start or after a clip."""
    section = await services.timeline.create_clip_section_at_insertion_point(
        video_id, request.name, request.insertion_point
    )
    return ClipSectionResponse.from_document(section)


@router.post("/{video_id}/clip-sections/place", response_model=ClipSectionResponse)
async def place_clip_section(
    video_id: str,
    request: PlaceClipSectionRequest,
    services: Services,
) -> ClipSectionResponse:
    """Create a clip section before or after any timeline item."""
    section = await services.timeline.create_clip_section_at_position(
        video_id,
        request.name,
        request.position,
        request.target_id,
        request.target_type,
    )
    return ClipSectionResponse.from_document(section)


@router.post("/{video_id}/export", response_model=ExportResult)
async def export_video(
    video_id: str,
    request: ExportVideoRequest,
    services: Services,
) -> ExportResult:
    """Render the video's visible clips with the rendering tool."""
    result = await services.export.export_video(
        video_id, request.shorts_directory_output_name
    )
    logger.info("[video=%s] Export result: %s", video_id, result)
    return result


@router.post("/{video_id}/append-from-obs", response_model=list[ClipResponse])
async def append_from_obs(
    video_id: str,
    request: AppendFromObsRequest,
    services: Services,
) -> list[ClipResponse]:
    """Pull newly recorded clips from OBS onto the timeline."""
    clips = await services.export.append_from_obs(
        video_id,
        file_path=request.file_path,
        insert_after_clip_id=request.insert_after_clip_id,
    )
    return [ClipResponse.from_document(clip) for clip in clips]
