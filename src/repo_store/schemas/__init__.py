"""Repository store schemas."""

from src.repo_store.schemas.parsed import ParsedLesson, ParsedSection

__all__ = ["ParsedLesson", "ParsedSection"]
