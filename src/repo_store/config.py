"""Repository store settings."""

import os

from src.common.base_course_model import BaseCourseModel


class RepoStoreConfig(BaseCourseModel):
    """Settings for creating repos."""

    # Name of the version created together with a new repo
    initial_version_name: str = "v1"


def get_repo_store_config() -> RepoStoreConfig:
    """Get repository store configuration from environment variables.

    Environment variables:
        REPO_INITIAL_VERSION_NAME: Name of a new repo's first version (default: v1)
    """
    return RepoStoreConfig(
        initial_version_name=os.environ.get("REPO_INITIAL_VERSION_NAME", "v1"),
    )
