"""MongoDB repositories for course entities."""

from src.mongodb.repositories.clip_repository import ClipRepository
from src.mongodb.repositories.clip_section_repository import ClipSectionRepository
from src.mongodb.repositories.lesson_repository import LessonRepository
from src.mongodb.repositories.repo_repository import RepoRepository
from src.mongodb.repositories.repo_version_repository import RepoVersionRepository
from src.mongodb.repositories.section_repository import SectionRepository
from src.mongodb.repositories.video_repository import VideoRepository

__all__ = [
    "ClipRepository",
    "ClipSectionRepository",
    "LessonRepository",
    "RepoRepository",
    "RepoVersionRepository",
    "SectionRepository",
    "VideoRepository",
]
