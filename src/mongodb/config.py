"""MongoDB configuration and connection settings."""

import os

from src.common.base_course_model import BaseCourseModel


class MongoDBConfig(BaseCourseModel):
    """Configuration for MongoDB connection."""

    connection_string: str
    database_name: str

    # Multi-document transactions need a replica set (Atlas, or a local rs).
    transactions_enabled: bool = True

    # Connection pool settings
    max_pool_size: int = 10
    min_pool_size: int = 1


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_mongodb_config() -> MongoDBConfig:
    """Get MongoDB configuration from environment variables.

    Environment variables:
        MONGODB_CONNECTION_STRING: MongoDB connection string
        MONGODB_DATABASE_NAME: Database name (default: course_video_manager_dev)
        MONGODB_TRANSACTIONS_ENABLED: Wrap mutations in transactions (default: true)
    """
    connection_string = os.environ.get("MONGODB_CONNECTION_STRING", "")
    if not connection_string:
        msg = "MONGODB_CONNECTION_STRING environment variable is required"
        raise ValueError(msg)

    database_name = os.environ.get("MONGODB_DATABASE_NAME", "course_video_manager_dev")

    return MongoDBConfig(
        connection_string=connection_string,
        database_name=database_name,
        transactions_enabled=_env_flag("MONGODB_TRANSACTIONS_ENABLED", True),
    )
