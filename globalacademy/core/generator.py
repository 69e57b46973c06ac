"""
LLM-backed generation of quiz feedback, quiz questions and transcript summaries
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from globalacademy.core.exceptions import LLMError
from globalacademy.core.llm import LLMProvider
from globalacademy.core.logging import get_logger, metrics_logger
from globalacademy.schemas import (
    FeedbackRequest,
    FeedbackResponse,
    GeneratedQuestion,
    MultipleChoiceQuestion,
    QuestionGenerationRequest,
    QuestionType,
    ShortAnswerQuestion,
    SummarizeRequest,
    SummaryResult,
    UserPerformance,
)
from globalacademy.utils.language import language_name

logger = get_logger(__name__)


DIFFICULTY_LEVELS = {1: "basic", 2: "intermediate", 3: "advanced"}

FALLBACK_EXPLANATION = "We could not generate a specific question at this time."


def fallback_feedback() -> FeedbackResponse:
    return FeedbackResponse(
        message="We could not analyze your answer at this time",
        is_correct=False,
        explanation="There was an error processing your response. Please try again.",
    )


def fallback_question(question_type: QuestionType) -> GeneratedQuestion:
    if question_type == QuestionType.MULTIPLE_CHOICE:
        return MultipleChoiceQuestion(
            question_text="What is the main topic of the content?",
            options=["Option A", "Option B", "Option C", "Option D"],
            correct_option_index=0,
            explanation=FALLBACK_EXPLANATION,
        )
    return ShortAnswerQuestion(
        question_text="Summarize the main concepts from the content.",
        sample_answer="A complete answer would describe the key points covered in the material.",
        key_points=["Key concept 1", "Key concept 2"],
        explanation=FALLBACK_EXPLANATION,
    )


def fallback_summary() -> SummaryResult:
    return SummaryResult(
        summary="We could not generate a summary at this time.",
        key_points=["Please try again later."],
    )


def difficulty_label(difficulty: int) -> str:
    return DIFFICULTY_LEVELS.get(difficulty, DIFFICULTY_LEVELS[1])


def performance_context(performance: Optional[UserPerformance]) -> str:
    if performance is None or performance.total_questions <= 0:
        return ""
    percentage = int(performance.correct_answers * 100 / performance.total_questions + 0.5)
    return f"The learner has answered {percentage}% of previous questions correctly."


def parse_generated_question(payload: Dict[str, Any]) -> GeneratedQuestion:
    """Classify a model payload by its shape: ``options`` vs ``sampleAnswer``."""
    if "options" in payload:
        return MultipleChoiceQuestion.model_validate(payload)
    if "sampleAnswer" in payload or "sample_answer" in payload:
        return ShortAnswerQuestion.model_validate(payload)
    raise LLMError("Generated question has neither options nor a sample answer",
                   {"keys": sorted(payload.keys())})


def _schema(model) -> Dict[str, Any]:
    return model.model_json_schema(by_alias=True)


class ContentGenerator:
    """Turns transcripts into assessment content.

    Every operation returns a well-formed object; provider or parsing errors
    are logged and replaced by a fixed fallback payload.
    """

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def generate_feedback(self, request: FeedbackRequest) -> FeedbackResponse:
        language = language_name(request.language)
        system_prompt = (
            "You are an expert educational tutor specializing in AI concepts. "
            "Your goal is to provide clear, concise, and encouraging feedback to learners "
            f"in their native language. Respond in {language} and analyze whether the user's answer is correct."
        )
        prompt = (
            f"Context: {request.context}\n\n"
            f"Question: {request.question}\n\n"
            f"User's answer: {request.user_answer}\n\n"
            f"Correct answer: {request.correct_answer}\n\n"
            "Provide feedback on the user's answer as JSON with the fields:\n"
            "- message: a short encouragement message (correct or try again)\n"
            "- isCorrect: boolean indicating if the answer is correct\n"
            "- explanation: detailed explanation of why the answer is correct or incorrect"
        )
        try:
            payload = await self.provider.generate_json(
                prompt, _schema(FeedbackResponse), system_prompt=system_prompt, operation="feedback"
            )
            return FeedbackResponse.model_validate(payload)
        except Exception as e:
            metrics_logger.log_generation_fallback("feedback", str(e))
            logger.error("Error generating feedback", error=str(e), error_type=type(e).__name__)
            return fallback_feedback()

    async def generate_question(self, request: QuestionGenerationRequest) -> GeneratedQuestion:
        level = difficulty_label(request.difficulty)
        qtype = request.question_type
        language = language_name(request.language)

        system_prompt = (
            "You are an expert educational content creator specialized in generating high-quality "
            f"assessment questions. Create a {level} {qtype.value} question in {language} based on the "
            "provided transcript. The question should test comprehension and critical thinking."
        )

        parts = [f"Transcript: {request.transcript}"]
        performance = performance_context(request.user_performance)
        if performance:
            parts.append(performance)
        if request.previous_questions:
            parts.append("Previous questions asked: " + "; ".join(request.previous_questions))
            parts.append("Do not repeat any of the previous questions.")
        parts.append(f"Generate a {level} level {qtype.value} question about the key concepts in this transcript.")
        if qtype == QuestionType.MULTIPLE_CHOICE:
            parts.append(
                "Include 4 options where only one is correct. Make the distractors plausible "
                "but clearly incorrect upon careful reading."
            )
            schema = _schema(MultipleChoiceQuestion)
        else:
            parts.append("Include a sample answer and key points that should be included in a good response.")
            schema = _schema(ShortAnswerQuestion)
        prompt = "\n\n".join(parts)

        try:
            payload = await self.provider.generate_json(
                prompt, schema, system_prompt=system_prompt, operation="generate_question"
            )
            question = parse_generated_question(payload)
            logger.info("Question generated",
                        question_type=type(question).__name__,
                        difficulty=request.difficulty,
                        language=request.language.value)
            return question
        except Exception as e:
            metrics_logger.log_generation_fallback("generate_question", str(e))
            logger.error("Error generating question", error=str(e), error_type=type(e).__name__,
                         question_type=qtype.value)
            return fallback_question(qtype)

    async def summarize_content(self, request: SummarizeRequest) -> SummaryResult:
        language = language_name(request.language)
        system_prompt = (
            "You are an expert at summarizing educational content. "
            f"Create a concise summary in {language} of the provided transcript, highlighting the key points."
        )
        section = ""
        if request.section_start is not None and request.section_end is not None:
            section = (
                f"The transcript below covers the video from {request.section_start:g}s "
                f"to {request.section_end:g}s.\n\n"
            )
        prompt = (
            f"{section}Transcript: {request.transcript}\n\n"
            "Provide a concise summary of the content and its key points."
        )
        try:
            payload = await self.provider.generate_json(
                prompt, _schema(SummaryResult), system_prompt=system_prompt, operation="summarize"
            )
            return SummaryResult.model_validate(payload)
        except Exception as e:
            metrics_logger.log_generation_fallback("summarize", str(e))
            logger.error("Error generating summary", error=str(e), error_type=type(e).__name__)
            return fallback_summary()
