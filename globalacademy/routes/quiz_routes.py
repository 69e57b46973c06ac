from fastapi import APIRouter, Depends

from globalacademy.core.generator import ContentGenerator
from globalacademy.dependencies import get_content_generator
from globalacademy.schemas import FeedbackRequest, FeedbackResponse


router = APIRouter(prefix="/api/quiz", tags=["quiz"])


@router.post("/feedback", response_model=FeedbackResponse)
async def quiz_feedback(
    req: FeedbackRequest,
    generator: ContentGenerator = Depends(get_content_generator),
):
    return await generator.generate_feedback(req)
