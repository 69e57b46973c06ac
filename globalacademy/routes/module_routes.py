from typing import List, Optional

from fastapi import APIRouter, Depends

from globalacademy.core.content import ContentService
from globalacademy.core.logging import get_logger
from globalacademy.dependencies import get_content_service, language_param
from globalacademy.schemas import (
    GenerateQuestionBody,
    LocalizedModule,
    LocalizedQuizQuestion,
    SummarizeBody,
    SummaryResult,
)
from globalacademy.utils.language import LanguageCode


logger = get_logger(__name__)

router = APIRouter(prefix="/api/modules", tags=["modules"])


@router.get("/{module_id}", response_model=LocalizedModule)
async def get_module(
    module_id: int,
    language: LanguageCode = Depends(language_param),
    service: ContentService = Depends(get_content_service),
):
    return await service.get_localized_module(module_id, language)


@router.get("/{module_id}/questions", response_model=List[LocalizedQuizQuestion])
async def get_module_questions(
    module_id: int,
    language: LanguageCode = Depends(language_param),
    service: ContentService = Depends(get_content_service),
):
    return await service.get_localized_quiz_questions(module_id, language)


@router.post("/{module_id}/generate-question", response_model=LocalizedQuizQuestion)
async def generate_question(
    module_id: int,
    req: Optional[GenerateQuestionBody] = None,
    service: ContentService = Depends(get_content_service),
):
    req = req or GenerateQuestionBody()
    logger.info("Question generation requested",
                module_id=module_id,
                language=req.language.value,
                difficulty=req.difficulty,
                question_type=req.question_type.value)
    return await service.generate_quiz_question(
        module_id,
        req.language,
        difficulty=req.difficulty,
        question_type=req.question_type,
    )


@router.post("/{module_id}/summarize", response_model=SummaryResult)
async def summarize_module(
    module_id: int,
    req: Optional[SummarizeBody] = None,
    service: ContentService = Depends(get_content_service),
):
    req = req or SummarizeBody()
    return await service.summarize_module(
        module_id,
        req.language,
        section_start=req.section_start,
        section_end=req.section_end,
    )
