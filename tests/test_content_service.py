"""Tests for ContentService localization and generation."""

import pytest

from globalacademy.core.content import (
    ContentService,
    segments_in_section,
    short_answer_to_multiple_choice,
)
from globalacademy.core.exceptions import NotFoundError
from globalacademy.core.generator import ContentGenerator
from globalacademy.core.translation import TranslationService
from globalacademy.schemas import (
    VIRTUAL_ID,
    ContentProviderCreate,
    ContentSegment,
    CourseCreate,
    ModuleCreate,
    QuestionType,
    QuizQuestionCreate,
    ShortAnswerQuestion,
    TranscriptCreate,
)
from globalacademy.storage import MemoryStorage
from globalacademy.utils.language import LanguageCode

from conftest import FakeLLMProvider, GatedBackend, RecordingBackend

EN, ES, FR = LanguageCode.EN, LanguageCode.ES, LanguageCode.FR

# Ids assigned by seed_demo_data
INTRO_COURSE = 1
CONCEPTS_MODULE = 1
HISTORY_MODULE = 2
APPROACHES_MODULE = 4


async def make_module(storage, segments=None):
    provider = await storage.create_content_provider(ContentProviderCreate(name="Academy"))
    course = await storage.create_course(CourseCreate(
        title="Course", description="About", instructor="Ada", provider_id=provider.id,
    ))
    module = await storage.create_module(ModuleCreate(
        course_id=course.id, title="Module", description=None, position=1,
        video_url="https://example.com/v", duration_seconds=20,
    ))
    if segments is not None:
        await storage.create_transcript(TranscriptCreate(
            module_id=module.id, language_code=EN, segments=segments,
        ))
    return module


class TestShortAnswerAdapter:
    """Short-answer questions presented as multiple choice."""

    def test_adapts_two_key_points(self):
        question = ShortAnswerQuestion(
            question_text="Explain supervised learning.",
            sample_answer="Learning from labeled examples.",
            key_points=["labels", "mapping"],
            explanation="why",
        )
        adapted = short_answer_to_multiple_choice(question, module_id=4, difficulty=2)

        assert adapted.id == VIRTUAL_ID
        assert adapted.options == [
            "Learning from labeled examples.",
            "Incorrect answer based on labels",
            "Incorrect answer based on mapping",
            "None of the above",
        ]
        assert adapted.correct_option_index == 0
        assert adapted.explanation == "why"
        assert adapted.difficulty == 2

    def test_single_key_point_is_repeated(self):
        question = ShortAnswerQuestion(
            question_text="q", sample_answer="a", key_points=["only"],
        )
        adapted = short_answer_to_multiple_choice(question, module_id=1, difficulty=1)
        assert adapted.options[1] == adapted.options[2] == "Incorrect answer based on only"


class TestSegmentsInSection:
    """Time slicing of transcripts."""

    SEGMENTS = [
        ContentSegment(start_time=0, end_time=10, text="a"),
        ContentSegment(start_time=10, end_time=20, text="b"),
        ContentSegment(start_time=20, end_time=30, text="c"),
    ]

    def test_no_bounds_keeps_everything(self):
        assert segments_in_section(self.SEGMENTS, None, None) == self.SEGMENTS
        assert segments_in_section(self.SEGMENTS, 5, None) == self.SEGMENTS

    def test_overlapping_segments_are_kept(self):
        texts = [s.text for s in segments_in_section(self.SEGMENTS, 12, 18)]
        assert texts == ["b"]
        texts = [s.text for s in segments_in_section(self.SEGMENTS, 5, 25)]
        assert texts == ["a", "b", "c"]


class TestLocalizedCourses:
    """Course listing and detail."""

    async def test_courses_are_translated(self, content_service):
        courses = await content_service.get_localized_courses(ES)
        assert len(courses) == 4
        intro = courses[0]
        assert intro.title == "Introduction to AI (es)"
        assert intro.provider_name == "OpenAI Academy"
        assert intro.instructor == "Dr. Sarah Johnson"

    async def test_english_is_not_translated(self, content_service, backend):
        courses = await content_service.get_localized_courses(EN)
        assert courses[0].title == "Introduction to AI"
        assert backend.calls == []

    async def test_course_translations_run_concurrently(self, storage, cache, generator):
        # Title and description of all four seeded courses
        backend = GatedBackend(expected=8)
        service = ContentService(storage, TranslationService(backend, cache), generator)

        courses = await service.get_localized_courses(FR)

        assert [c.title for c in courses][0] == "Introduction to AI!"
        assert all(c.description.endswith("!") for c in courses)
        assert backend.peak == 8

    async def test_courses_without_provider_are_skipped(self, translator, generator):
        storage = MemoryStorage()
        await storage.create_course(CourseCreate(
            title="Orphan", description="d", instructor="i", provider_id=99,
        ))
        service = ContentService(storage, translator, generator)
        assert await service.get_localized_courses(FR) == []

    async def test_course_detail_lists_modules_in_order(self, content_service):
        detail = await content_service.get_localized_course_detail(INTRO_COURSE, FR)
        assert detail.title == "Introduction to AI (fr)"
        assert [m.position for m in detail.modules] == [1, 2, 3, 4]
        assert detail.modules[1].title == "History of AI (fr)"

    async def test_missing_course(self, content_service):
        with pytest.raises(NotFoundError):
            await content_service.get_localized_course_detail(999, ES)

    async def test_course_with_missing_provider(self, translator, generator):
        storage = MemoryStorage()
        course = await storage.create_course(CourseCreate(
            title="Orphan", description="d", instructor="i", provider_id=99,
        ))
        service = ContentService(storage, translator, generator)
        with pytest.raises(NotFoundError):
            await service.get_localized_course_detail(course.id, ES)


class TestLocalizedModule:
    """Transcript resolution."""

    async def test_virtual_transcript_from_english(self, translator, generator):
        storage = MemoryStorage()
        module = await make_module(storage, [
            ContentSegment(start_time=0, end_time=10, text="Hello"),
            ContentSegment(start_time=10, end_time=20, text="World"),
        ])
        service = ContentService(storage, translator, generator)

        localized = await service.get_localized_module(module.id, ES)

        transcript = localized.transcript
        assert transcript.id == VIRTUAL_ID
        assert transcript.language_code == ES
        assert [s.text for s in transcript.segments] == ["Hello (es)", "World (es)"]
        assert [(s.start_time, s.end_time) for s in transcript.segments] == [(0, 10), (10, 20)]
        assert localized.title == "Module (es)"
        assert localized.description == ""

    async def test_module_translations_run_concurrently(self, cache, generator):
        storage = MemoryStorage()
        module = await make_module(storage, [
            ContentSegment(start_time=0, end_time=10, text="Hello"),
            ContentSegment(start_time=10, end_time=20, text="World"),
        ])
        # Title and both segments; the empty description never reaches the backend
        backend = GatedBackend(expected=3)
        service = ContentService(storage, TranslationService(backend, cache), generator)

        localized = await service.get_localized_module(module.id, ES)

        assert localized.title == "Module!"
        assert [s.text for s in localized.transcript.segments] == ["Hello!", "World!"]
        assert backend.peak == 3

    async def test_persisted_target_transcript_is_preferred(self, storage, content_service):
        persisted = await storage.create_transcript(TranscriptCreate(
            module_id=CONCEPTS_MODULE,
            language_code=ES,
            segments=[ContentSegment(start_time=0, end_time=10, text="Bienvenido")],
        ))
        localized = await content_service.get_localized_module(CONCEPTS_MODULE, ES)
        assert localized.transcript.id == persisted.id
        assert localized.transcript.segments[0].text == "Bienvenido"

    async def test_english_transcript_is_returned_as_is(self, content_service):
        localized = await content_service.get_localized_module(CONCEPTS_MODULE, EN)
        assert localized.transcript.id != VIRTUAL_ID
        assert len(localized.transcript.segments) == 3

    async def test_module_without_transcript(self, content_service):
        with pytest.raises(NotFoundError):
            await content_service.get_localized_module(HISTORY_MODULE, ES)

    async def test_missing_module(self, content_service):
        with pytest.raises(NotFoundError):
            await content_service.get_localized_module(999, ES)

    async def test_failing_backend_serves_english(self, storage, cache, generator):
        service = ContentService(storage, TranslationService(RecordingBackend(fail=True), cache), generator)
        localized = await service.get_localized_module(CONCEPTS_MODULE, FR)
        assert localized.transcript.id == VIRTUAL_ID
        assert localized.transcript.segments[0].text.startswith("Welcome to Introduction to AI.")


class TestLocalizedQuizQuestions:
    """Quiz question resolution."""

    async def test_no_questions_in_any_language(self, translator, generator):
        storage = MemoryStorage()
        module = await make_module(storage)
        service = ContentService(storage, translator, generator)
        assert await service.get_localized_quiz_questions(module.id, ES) == []
        assert await service.get_localized_quiz_questions(module.id, EN) == []

    async def test_english_questions_are_translated(self, content_service):
        questions = await content_service.get_localized_quiz_questions(CONCEPTS_MODULE, FR)
        assert len(questions) == 1
        question = questions[0]
        assert question.id == 1
        assert question.question_text == "What is artificial intelligence primarily concerned with? (fr)"
        assert question.options[0] == "Building physical robots (fr)"
        assert len(question.options) == 4
        assert question.explanation.endswith("(fr)")
        assert question.correct_option_index == 1
        assert question.appearance_time == 35

    async def test_persisted_target_questions_are_preferred(self, storage, content_service, backend):
        await storage.create_quiz_question(QuizQuestionCreate(
            module_id=CONCEPTS_MODULE,
            question_text="¿Qué es la IA?",
            options=["a", "b"],
            correct_option_index=0,
            language_code=ES,
        ))
        questions = await content_service.get_localized_quiz_questions(CONCEPTS_MODULE, ES)
        assert [q.question_text for q in questions] == ["¿Qué es la IA?"]
        assert questions[0].explanation == ""
        assert backend.calls == []


class TestGenerateQuizQuestion:
    """On-demand question generation."""

    async def test_multiple_choice_result(self, storage, translator):
        llm = FakeLLMProvider({"generate_question": {
            "questionText": "¿Qué usa el aprendizaje supervisado?",
            "options": ["Etiquetas", "Recompensas"],
            "correctOptionIndex": 0,
            "explanation": "Datos etiquetados.",
        }})
        service = ContentService(storage, translator, ContentGenerator(llm))

        question = await service.generate_quiz_question(APPROACHES_MODULE, ES, difficulty=3)

        assert question.id == VIRTUAL_ID
        assert question.module_id == APPROACHES_MODULE
        assert question.options == ["Etiquetas", "Recompensas"]
        assert question.difficulty == 3

        prompt = llm.calls[0]["prompt"]
        assert "Machine learning algorithms can be broadly categorized" in prompt
        assert "(es) In supervised learning" in prompt
        assert "Which type of machine learning is used when we have labeled data for training? (es)" in prompt
        assert "advanced" in llm.calls[0]["system_prompt"]

    async def test_short_answer_is_adapted(self, storage, translator):
        llm = FakeLLMProvider({"generate_question": {
            "questionText": "Explain AI.",
            "sampleAnswer": "Machines performing intelligent tasks.",
            "keyPoints": ["robots"],
        }})
        service = ContentService(storage, translator, ContentGenerator(llm))

        question = await service.generate_quiz_question(
            CONCEPTS_MODULE, EN, question_type=QuestionType.SHORT_ANSWER
        )
        assert question.options[0] == "Machines performing intelligent tasks."
        assert question.options[3] == "None of the above"
        assert question.correct_option_index == 0
        assert question.id == VIRTUAL_ID

    async def test_generator_failure_gives_fallback_question(self, content_service):
        question = await content_service.generate_quiz_question(CONCEPTS_MODULE, FR)
        assert question.question_text == "What is the main topic of the content?"
        assert question.id == VIRTUAL_ID

    async def test_module_without_transcript(self, content_service):
        with pytest.raises(NotFoundError):
            await content_service.generate_quiz_question(HISTORY_MODULE, EN)


class TestSummarizeModule:
    """Module summaries."""

    async def test_summarizes_full_transcript(self, storage, translator):
        llm = FakeLLMProvider({"summarize": {"summary": "Types of ML.", "keyPoints": ["supervised"]}})
        service = ContentService(storage, translator, ContentGenerator(llm))

        result = await service.summarize_module(APPROACHES_MODULE, EN)

        assert result.summary == "Types of ML."
        prompt = llm.calls[0]["prompt"]
        assert "reinforcement learning" in prompt
        assert "Unsupervised learning, on the other hand" in prompt

    async def test_section_limits_transcript(self, storage, translator):
        llm = FakeLLMProvider({"summarize": {"summary": "s", "keyPoints": []}})
        service = ContentService(storage, translator, ContentGenerator(llm))

        await service.summarize_module(APPROACHES_MODULE, EN, section_start=320, section_end=346)

        prompt = llm.calls[0]["prompt"]
        assert "Machine learning algorithms" in prompt
        assert "In supervised learning" in prompt
        assert "Examples of supervised learning" not in prompt

    async def test_empty_section_uses_full_transcript(self, storage, translator):
        llm = FakeLLMProvider({"summarize": {"summary": "s", "keyPoints": []}})
        service = ContentService(storage, translator, ContentGenerator(llm))

        await service.summarize_module(APPROACHES_MODULE, EN, section_start=0, section_end=10)

        prompt = llm.calls[0]["prompt"]
        assert "Unsupervised learning" in prompt
        assert "from 0s" not in prompt

    async def test_generator_failure_gives_fallback_summary(self, content_service):
        result = await content_service.summarize_module(CONCEPTS_MODULE, ES)
        assert result.summary == "We could not generate a summary at this time."


class TestLearningPaths:
    """Learning path listing."""

    async def test_paths_are_translated(self, content_service):
        paths = await content_service.get_localized_learning_paths(ES)
        assert [p.title for p in paths] == [
            "Artificial Intelligence (es)",
            "Machine Learning (es)",
            "Deep Learning (es)",
        ]
        assert paths[0].courses == [1, 3, 4]
        assert paths[0].icon == "blur_on"
