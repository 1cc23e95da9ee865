"""Repo routes."""

from fastapi import APIRouter

from src.api.dependencies import Services
from src.api.schemas import (
    AddRepoRequest,
    ArchiveRequest,
    ChangelogResponse,
    CopyVersionRequest,
    RenameRequest,
    RepoResponse,
    UpdateRepoFilePathRequest,
    VersionResponse,
)
from src.changelog.projector import build_changelog, render_changelog_markdown

router = APIRouter()


@router.post("", response_model=RepoResponse)
async def add_repo(request: AddRepoRequest, services: Services) -> RepoResponse:
    """Add a repo and parse its sections and lessons from disk."""
    repo = await services.repo_store.add_repo(request.file_path, request.name)
    return RepoResponse.from_document(repo)


@router.get("", response_model=list[RepoResponse])
async def list_repos(services: Services, archived: bool = False) -> list[RepoResponse]:
    repos = await services.repo_store.list_repos(archived=archived)
    return [RepoResponse.from_document(repo) for repo in repos]


@router.get("/{repo_id}", response_model=RepoResponse)
async def get_repo(repo_id: str, services: Services) -> RepoResponse:
    return RepoResponse.from_document(await services.repo_store.get_repo(repo_id))


@router.patch("/{repo_id}/name", response_model=RepoResponse)
async def rename_repo(repo_id: str, request: RenameRequest, services: Services) -> RepoResponse:
    repo = await services.repo_store.rename_repo(repo_id, request.name)
    return RepoResponse.from_document(repo)


@router.patch("/{repo_id}/archived", response_model=RepoResponse)
async def archive_repo(repo_id: str, request: ArchiveRequest, services: Services) -> RepoResponse:
    repo = await services.repo_store.archive_repo(repo_id, request.archived)
    return RepoResponse.from_document(repo)


@router.patch("/{repo_id}/file-path", response_model=RepoResponse)
async def update_repo_file_path(
    repo_id: str,
    request: UpdateRepoFilePathRequest,
    services: Services,
) -> RepoResponse:
    """Point a repo at a new directory."""
    repo = await services.repo_store.update_repo_file_path(repo_id, request.file_path)
    return RepoResponse.from_document(repo)


@router.delete("/{repo_id}")
async def delete_repo(repo_id: str, services: Services) -> dict[str, str]:
    """Delete a repo and everything under it."""
    await services.repo_store.delete_repo(repo_id)
    return {"status": "deleted", "repo_id": repo_id}


@router.get("/{repo_id}/versions", response_model=list[VersionResponse])
async def list_versions(repo_id: str, services: Services) -> list[VersionResponse]:
    """List versions, newest first."""
    versions = await services.repo_store.list_versions(repo_id)
    return [VersionResponse.from_document(version) for version in versions]


@router.get("/{repo_id}/versions/latest", response_model=VersionResponse)
async def get_latest_version(repo_id: str, services: Services) -> VersionResponse:
    version = await services.repo_store.get_latest_version(repo_id)
    return VersionResponse.from_document(version)


@router.post("/{repo_id}/versions", response_model=VersionResponse)
async def copy_version(
    repo_id: str,
    request: CopyVersionRequest,
    services: Services,
) -> VersionResponse:
    """Branch a new version off the latest one."""
    version = await services.repo_store.copy_version_structure(
        request.source_version_id, repo_id, request.name
    )
    return VersionResponse.from_document(version)


@router.post("/{repo_id}/versions/empty", response_model=VersionResponse)
async def create_version(
    repo_id: str,
    request: RenameRequest,
    services: Services,
) -> VersionResponse:
    """Append a version with no sections."""
    version = await services.repo_store.create_version(repo_id, request.name)
    return VersionResponse.from_document(version)


@router.get("/{repo_id}/changelog", response_model=ChangelogResponse)
async def get_changelog(repo_id: str, services: Services) -> ChangelogResponse:
    await services.repo_store.get_repo(repo_id)
    snapshots = await services.structure.get_repo_structures(repo_id)
    entries = build_changelog(snapshots)
    return ChangelogResponse(entries=entries, markdown=render_changelog_markdown(entries))
