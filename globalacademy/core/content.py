"""
Localized course views and on-demand quiz/summary generation
"""
from __future__ import annotations

from typing import List, Optional
import asyncio

from globalacademy.core.exceptions import NotFoundError
from globalacademy.core.generator import ContentGenerator
from globalacademy.core.logging import get_logger, log_execution_time
from globalacademy.core.translation import TranslationService
from globalacademy.schemas import (
    VIRTUAL_ID,
    ContentSegment,
    Course,
    ContentProvider,
    LearningPath,
    LocalizedCourse,
    LocalizedCourseDetail,
    LocalizedLearningPath,
    LocalizedModule,
    LocalizedModuleSummary,
    LocalizedQuizQuestion,
    LocalizedTranscript,
    Module,
    QuestionGenerationRequest,
    QuestionType,
    QuizQuestion,
    ShortAnswerQuestion,
    SummarizeRequest,
    SummaryResult,
)
from globalacademy.storage import Storage
from globalacademy.utils.language import LanguageCode, SOURCE_LANGUAGE

logger = get_logger(__name__)


def short_answer_to_multiple_choice(
    question: ShortAnswerQuestion,
    module_id: int,
    difficulty: int,
) -> LocalizedQuizQuestion:
    """Present a short-answer question as four options, the sample answer first."""
    first = question.key_points[0]
    second = question.key_points[1] if len(question.key_points) > 1 else first
    return LocalizedQuizQuestion(
        id=VIRTUAL_ID,
        module_id=module_id,
        question_text=question.question_text,
        options=[
            question.sample_answer,
            f"Incorrect answer based on {first}",
            f"Incorrect answer based on {second}",
            "None of the above",
        ],
        correct_option_index=0,
        explanation=question.explanation,
        difficulty=difficulty,
    )


def segments_in_section(
    segments: List[ContentSegment],
    section_start: Optional[float],
    section_end: Optional[float],
) -> List[ContentSegment]:
    """Segments overlapping ``[section_start, section_end]``; all of them when a bound is missing."""
    if section_start is None or section_end is None:
        return list(segments)
    return [
        s for s in segments
        if s.end_time >= section_start and s.start_time <= section_end
    ]


def transcript_text(segments: List[ContentSegment]) -> str:
    return " ".join(s.text for s in segments)


class ContentService:
    """Assembles localized views from storage, translating text fields on the way out."""

    def __init__(self, storage: Storage, translator: TranslationService, generator: ContentGenerator):
        self.storage = storage
        self.translator = translator
        self.generator = generator

    async def _localize_course(self, course: Course, provider: ContentProvider,
                               lang: LanguageCode) -> LocalizedCourse:
        title, description = await asyncio.gather(
            self.translator.translate(course.title, lang),
            self.translator.translate(course.description, lang),
        )
        return LocalizedCourse(
            id=course.id,
            title=title,
            description=description,
            instructor=course.instructor,
            thumbnail_url=course.thumbnail_url,
            provider_id=course.provider_id,
            provider_name=provider.name,
            rating=course.rating,
            rating_count=course.rating_count,
            is_new=course.is_new,
        )

    async def _localize_module_summary(self, module: Module, lang: LanguageCode) -> LocalizedModuleSummary:
        title, description = await asyncio.gather(
            self.translator.translate(module.title, lang),
            self.translator.translate(module.description or "", lang),
        )
        return LocalizedModuleSummary(
            id=module.id,
            course_id=module.course_id,
            title=title,
            description=description,
            position=module.position,
            video_url=module.video_url,
            duration_seconds=module.duration_seconds,
        )

    async def get_localized_courses(self, lang: LanguageCode) -> List[LocalizedCourse]:
        courses = await self.storage.get_courses()
        providers = {p.id: p for p in await self.storage.get_content_providers()}

        resolvable = []
        for course in courses:
            provider = providers.get(course.provider_id)
            if provider is None:
                logger.warning("Skipping course without provider",
                               course_id=course.id, provider_id=course.provider_id)
                continue
            resolvable.append((course, provider))

        return list(await asyncio.gather(
            *(self._localize_course(course, provider, lang) for course, provider in resolvable)
        ))

    async def get_localized_course_detail(self, course_id: int, lang: LanguageCode) -> LocalizedCourseDetail:
        course = await self.storage.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found", {"course_id": course_id})
        provider = await self.storage.get_content_provider(course.provider_id)
        if provider is None:
            raise NotFoundError("Content provider not found",
                                {"course_id": course_id, "provider_id": course.provider_id})

        modules = await self.storage.get_modules_by_course(course_id)
        localized_course, localized_modules = await asyncio.gather(
            self._localize_course(course, provider, lang),
            asyncio.gather(*(self._localize_module_summary(m, lang) for m in modules)),
        )
        return LocalizedCourseDetail(
            **localized_course.model_dump(),
            modules=list(localized_modules),
        )

    async def _localized_transcript(self, module_id: int, lang: LanguageCode) -> LocalizedTranscript:
        transcript = await self.storage.get_transcript(module_id, lang)
        if transcript is not None:
            return LocalizedTranscript(
                id=transcript.id,
                language_code=transcript.language_code,
                segments=transcript.segments,
            )

        source = await self.storage.get_transcript(module_id, SOURCE_LANGUAGE)
        if source is None:
            raise NotFoundError("Transcript not found",
                                {"module_id": module_id, "language": lang.value})

        texts = await self.translator.translate_many([s.text for s in source.segments], lang)
        logger.debug("Built virtual transcript",
                     module_id=module_id, language=lang.value, segments=len(texts))
        return LocalizedTranscript(
            id=VIRTUAL_ID,
            language_code=lang,
            segments=[
                ContentSegment(start_time=s.start_time, end_time=s.end_time, text=text)
                for s, text in zip(source.segments, texts)
            ],
        )

    async def get_localized_module(self, module_id: int, lang: LanguageCode) -> LocalizedModule:
        module = await self.storage.get_module(module_id)
        if module is None:
            raise NotFoundError("Module not found", {"module_id": module_id})

        summary, transcript = await asyncio.gather(
            self._localize_module_summary(module, lang),
            self._localized_transcript(module_id, lang),
        )
        return LocalizedModule(**summary.model_dump(), transcript=transcript)

    async def _translate_question(self, question: QuizQuestion, lang: LanguageCode) -> LocalizedQuizQuestion:
        question_text, explanation, options = await asyncio.gather(
            self.translator.translate(question.question_text, lang),
            self.translator.translate(question.explanation or "", lang),
            self.translator.translate_many(question.options, lang),
        )
        return LocalizedQuizQuestion(
            id=question.id,
            module_id=question.module_id,
            question_text=question_text,
            options=options,
            correct_option_index=question.correct_option_index,
            explanation=explanation,
            appearance_time=question.appearance_time,
            difficulty=question.difficulty,
        )

    async def get_localized_quiz_questions(self, module_id: int, lang: LanguageCode) -> List[LocalizedQuizQuestion]:
        persisted = await self.storage.get_quiz_questions(module_id, lang)
        if persisted:
            return [
                LocalizedQuizQuestion(
                    id=q.id,
                    module_id=q.module_id,
                    question_text=q.question_text,
                    options=q.options,
                    correct_option_index=q.correct_option_index,
                    explanation=q.explanation or "",
                    appearance_time=q.appearance_time,
                    difficulty=q.difficulty,
                )
                for q in persisted
            ]

        if lang == SOURCE_LANGUAGE:
            return []
        source = await self.storage.get_quiz_questions(module_id, SOURCE_LANGUAGE)
        if not source:
            return []
        return list(await asyncio.gather(*(self._translate_question(q, lang) for q in source)))

    @log_execution_time
    async def generate_quiz_question(
        self,
        module_id: int,
        lang: LanguageCode,
        difficulty: int = 1,
        question_type: QuestionType = QuestionType.MULTIPLE_CHOICE,
    ) -> LocalizedQuizQuestion:
        module = await self.get_localized_module(module_id, lang)
        existing = await self.get_localized_quiz_questions(module_id, lang)

        generated = await self.generator.generate_question(QuestionGenerationRequest(
            transcript=transcript_text(module.transcript.segments),
            difficulty=difficulty,
            previous_questions=[q.question_text for q in existing],
            question_type=question_type,
            language=lang,
        ))

        if isinstance(generated, ShortAnswerQuestion):
            return short_answer_to_multiple_choice(generated, module_id, difficulty)
        return LocalizedQuizQuestion(
            id=VIRTUAL_ID,
            module_id=module_id,
            question_text=generated.question_text,
            options=generated.options,
            correct_option_index=generated.correct_option_index,
            explanation=generated.explanation,
            difficulty=difficulty,
        )

    @log_execution_time
    async def summarize_module(
        self,
        module_id: int,
        lang: LanguageCode,
        section_start: Optional[float] = None,
        section_end: Optional[float] = None,
    ) -> SummaryResult:
        module = await self.get_localized_module(module_id, lang)
        segments = segments_in_section(module.transcript.segments, section_start, section_end)
        if not segments:
            logger.info("No transcript segments in requested section, summarizing full transcript",
                        module_id=module_id, section_start=section_start, section_end=section_end)
            segments = module.transcript.segments
            section_start = section_end = None

        return await self.generator.summarize_content(SummarizeRequest(
            transcript=transcript_text(segments),
            language=lang,
            section_start=section_start,
            section_end=section_end,
        ))

    async def _localize_learning_path(self, path: LearningPath, lang: LanguageCode) -> LocalizedLearningPath:
        title, description = await asyncio.gather(
            self.translator.translate(path.title, lang),
            self.translator.translate(path.description or "", lang),
        )
        return LocalizedLearningPath(
            id=path.id,
            title=title,
            description=description,
            icon=path.icon,
            courses=path.courses,
        )

    async def get_localized_learning_paths(self, lang: LanguageCode) -> List[LocalizedLearningPath]:
        paths = await self.storage.get_learning_paths()
        return list(await asyncio.gather(*(self._localize_learning_path(p, lang) for p in paths)))
