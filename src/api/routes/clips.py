"""Clip and clip section routes."""

from fastapi import APIRouter

from src.api.dependencies import Services
from src.api.schemas import (
    ClipResponse,
    ClipSectionResponse,
    FirstFrameResponse,
    RenameRequest,
    ReorderRequest,
    TranscribeClipsRequest,
    UpdateClipRequest,
)
from src.timeline.schemas import ClipUpdate

router = APIRouter()
clip_sections_router = APIRouter()


@clip_sections_router.patch("/{clip_section_id}/name", response_model=ClipSectionResponse)
async def rename_clip_section(
    clip_section_id: str,
    request: RenameRequest,
    services: Services,
) -> ClipSectionResponse:
    section = await services.timeline.update_clip_section(clip_section_id, request.name)
    return ClipSectionResponse.from_document(section)


@clip_sections_router.post("/{clip_section_id}/reorder", response_model=ClipSectionResponse)
async def reorder_clip_section(
    clip_section_id: str,
    request: ReorderRequest,
    services: Services,
) -> ClipSectionResponse:
    """Move a clip section up or down; a no-op at either end."""
    section = await services.timeline.reorder_clip_section(clip_section_id, request.direction)
    return ClipSectionResponse.from_document(section)


@clip_sections_router.post("/{clip_section_id}/archive", response_model=ClipSectionResponse)
async def archive_clip_section(clip_section_id: str, services: Services) -> ClipSectionResponse:
    section = await services.timeline.archive_clip_section(clip_section_id)
    return ClipSectionResponse.from_document(section)


@clip_sections_router.post("/{clip_section_id}/unarchive", response_model=ClipSectionResponse)
async def unarchive_clip_section(clip_section_id: str, services: Services) -> ClipSectionResponse:
    section = await services.timeline.unarchive_clip_section(clip_section_id)
    return ClipSectionResponse.from_document(section)


@router.post("/transcribe", response_model=list[ClipResponse])
async def transcribe_clips(
    request: TranscribeClipsRequest,
    services: Services,
) -> list[ClipResponse]:
    """Transcribe clips; responds with the clips that received text."""
    clips = await services.export.transcribe_clips(request.clip_ids)
    return [ClipResponse.from_document(clip) for clip in clips]


@router.patch("/{clip_id}", response_model=ClipResponse)
async def update_clip(clip_id: str, request: UpdateClipRequest, services: Services) -> ClipResponse:
    update = ClipUpdate(**request.model_dump(exclude_none=True))
    clip = await services.timeline.update_clip(clip_id, update)
    return ClipResponse.from_document(clip)


@router.post("/{clip_id}/reorder", response_model=ClipResponse)
async def reorder_clip(clip_id: str, request: ReorderRequest, services: Services) -> ClipResponse:
    clip = await services.timeline.reorder_clip(clip_id, request.direction)
    return ClipResponse.from_document(clip)


@router.post("/{clip_id}/archive", response_model=ClipResponse)
async def archive_clip(clip_id: str, services: Services) -> ClipResponse:
    clip = await services.timeline.archive_clip(clip_id)
    return ClipResponse.from_document(clip)


@router.get("/{clip_id}/first-frame", response_model=FirstFrameResponse)
async def get_first_frame(clip_id: str, services: Services) -> FirstFrameResponse:
    """Extract the frame at the clip's start."""
    image_path = await services.export.get_first_frame(clip_id)
    return FirstFrameResponse(image_path=image_path)
