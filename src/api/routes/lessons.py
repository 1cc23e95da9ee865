"""Section and lesson routes."""

from fastapi import APIRouter

from src.api.dependencies import Services
from src.api.schemas import (
    CreateLessonsRequest,
    LessonResponse,
    UpdateLessonRequest,
)

router = APIRouter()
sections_router = APIRouter()


@sections_router.post("/{section_id}/lessons", response_model=list[LessonResponse])
async def create_lessons(
    section_id: str,
    request: CreateLessonsRequest,
    services: Services,
) -> list[LessonResponse]:
    lessons = await services.structure.create_lessons(section_id, request.lessons)
    return [LessonResponse.from_document(lesson) for lesson in lessons]


@sections_router.delete("/{section_id}")
async def delete_section(section_id: str, services: Services) -> dict[str, str]:
    await services.structure.delete_section(section_id)
    return {"status": "deleted", "section_id": section_id}


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(lesson_id: str, services: Services) -> LessonResponse:
    return LessonResponse.from_document(await services.structure.get_lesson(lesson_id))


@router.patch("/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    lesson_id: str,
    request: UpdateLessonRequest,
    services: Services,
) -> LessonResponse:
    """Rename a lesson; its number is re-read from the new path."""
    lesson = await services.structure.update_lesson(
        lesson_id,
        request.path,
        section_id=request.section_id,
        lesson_number=request.lesson_number,
    )
    return LessonResponse.from_document(lesson)


@router.delete("/{lesson_id}")
async def delete_lesson(lesson_id: str, services: Services) -> dict[str, str]:
    """Delete a lesson with its videos and clips."""
    await services.structure.delete_lesson(lesson_id)
    return {"status": "deleted", "lesson_id": lesson_id}

