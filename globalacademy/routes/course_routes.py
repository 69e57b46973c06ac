from typing import List

from fastapi import APIRouter, Depends

from globalacademy.core.content import ContentService
from globalacademy.dependencies import get_content_service, language_param
from globalacademy.schemas import LocalizedCourse, LocalizedCourseDetail, LocalizedLearningPath
from globalacademy.utils.language import LanguageCode, SUPPORTED_LANGUAGES


router = APIRouter(prefix="/api", tags=["courses"])


@router.get("/courses", response_model=List[LocalizedCourse])
async def list_courses(
    language: LanguageCode = Depends(language_param),
    service: ContentService = Depends(get_content_service),
):
    return await service.get_localized_courses(language)


@router.get("/courses/{course_id}", response_model=LocalizedCourseDetail)
async def get_course(
    course_id: int,
    language: LanguageCode = Depends(language_param),
    service: ContentService = Depends(get_content_service),
):
    return await service.get_localized_course_detail(course_id, language)


@router.get("/learning-paths", response_model=List[LocalizedLearningPath])
async def list_learning_paths(
    language: LanguageCode = Depends(language_param),
    service: ContentService = Depends(get_content_service),
):
    return await service.get_localized_learning_paths(language)


@router.get("/languages")
async def list_languages():
    """Supported language codes and their display names"""
    return SUPPORTED_LANGUAGES
