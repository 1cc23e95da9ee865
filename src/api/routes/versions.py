"""Repo version routes."""

from fastapi import APIRouter

from src.api.dependencies import Services
from src.api.schemas import (
    CreateSectionsRequest,
    RenameRequest,
    SectionResponse,
    VersionResponse,
)
from src.structure_store.schemas import VersionSnapshot

router = APIRouter()


@router.get("/{version_id}", response_model=VersionResponse)
async def get_version(version_id: str, services: Services) -> VersionResponse:
    return VersionResponse.from_document(await services.repo_store.get_version(version_id))


@router.patch("/{version_id}/name", response_model=VersionResponse)
async def rename_version(
    version_id: str,
    request: RenameRequest,
    services: Services,
) -> VersionResponse:
    version = await services.repo_store.rename_version(version_id, request.name)
    return VersionResponse.from_document(version)


@router.delete("/{version_id}", response_model=VersionResponse)
async def delete_version(version_id: str, services: Services) -> VersionResponse:
    """Delete the latest version; responds with the new latest version."""
    new_latest = await services.repo_store.delete_repo_version(version_id)
    return VersionResponse.from_document(new_latest)


@router.get("/{version_id}/sections", response_model=list[SectionResponse])
async def list_sections(version_id: str, services: Services) -> list[SectionResponse]:
    """List the version's sections with their lessons."""
    sections = await services.structure.list_sections(version_id)
    return [SectionResponse.from_structure(section) for section in sections]


@router.post("/{version_id}/sections", response_model=list[SectionResponse])
async def create_sections(
    version_id: str,
    request: CreateSectionsRequest,
    services: Services,
) -> list[SectionResponse]:
    sections = await services.structure.create_sections(request.sections, version_id)
    return [SectionResponse.from_document(section) for section in sections]


@router.get("/{version_id}/structure", response_model=VersionSnapshot)
async def get_version_structure(version_id: str, services: Services) -> VersionSnapshot:
    """Sections, lessons, lesson videos and clip texts of one version."""
    return await services.structure.get_version_structure(version_id)
