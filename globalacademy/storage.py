"""
Storage for courses, modules, transcripts, quiz questions and learning paths
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from itertools import count
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from globalacademy.core.logging import get_logger
from globalacademy.models import (
    ContentProviderRow,
    CourseRow,
    LearningPathRow,
    ModuleRow,
    QuizQuestionRow,
    TranscriptRow,
)
from globalacademy.schemas import (
    ContentProvider,
    ContentProviderCreate,
    Course,
    CourseCreate,
    LearningPath,
    LearningPathCreate,
    Module,
    ModuleCreate,
    QuizQuestion,
    QuizQuestionCreate,
    Transcript,
    TranscriptCreate,
)
from globalacademy.utils.language import LanguageCode

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class Storage(ABC):
    """Read/write access to the course catalogue.

    ``get_*`` lookups return ``None`` for unknown ids; ``create_*`` assigns ids.
    """

    @abstractmethod
    async def get_content_providers(self) -> List[ContentProvider]: ...

    @abstractmethod
    async def get_content_provider(self, provider_id: int) -> Optional[ContentProvider]: ...

    @abstractmethod
    async def create_content_provider(self, provider: ContentProviderCreate) -> ContentProvider: ...

    @abstractmethod
    async def get_courses(self) -> List[Course]: ...

    @abstractmethod
    async def get_course(self, course_id: int) -> Optional[Course]: ...

    @abstractmethod
    async def create_course(self, course: CourseCreate) -> Course: ...

    @abstractmethod
    async def get_modules_by_course(self, course_id: int) -> List[Module]:
        """Modules of a course ordered by position."""

    @abstractmethod
    async def get_module(self, module_id: int) -> Optional[Module]: ...

    @abstractmethod
    async def create_module(self, module: ModuleCreate) -> Module: ...

    @abstractmethod
    async def get_transcript(self, module_id: int, language: LanguageCode) -> Optional[Transcript]: ...

    @abstractmethod
    async def create_transcript(self, transcript: TranscriptCreate) -> Transcript: ...

    @abstractmethod
    async def get_quiz_questions(self, module_id: int, language: LanguageCode) -> List[QuizQuestion]: ...

    @abstractmethod
    async def create_quiz_question(self, question: QuizQuestionCreate) -> QuizQuestion: ...

    @abstractmethod
    async def get_learning_paths(self) -> List[LearningPath]: ...

    @abstractmethod
    async def get_learning_path(self, path_id: int) -> Optional[LearningPath]: ...

    @abstractmethod
    async def create_learning_path(self, path: LearningPathCreate) -> LearningPath: ...

    @abstractmethod
    async def is_empty(self) -> bool:
        """True when no course has been stored yet."""

    async def close(self) -> None:
        return None


class MemoryStorage(Storage):
    """Dict-backed storage; contents live as long as the instance."""

    def __init__(self):
        self._providers: Dict[int, ContentProvider] = {}
        self._courses: Dict[int, Course] = {}
        self._modules: Dict[int, Module] = {}
        self._transcripts: Dict[int, Transcript] = {}
        self._questions: Dict[int, QuizQuestion] = {}
        self._paths: Dict[int, LearningPath] = {}
        self._ids = {name: count(1) for name in ("provider", "course", "module", "transcript", "question", "path")}

    def _insert(self, table: Dict[int, RecordT], kind: str, model: Type[RecordT], data: BaseModel) -> RecordT:
        record = model(id=next(self._ids[kind]), **data.model_dump())
        table[record.id] = record
        return record

    async def get_content_providers(self) -> List[ContentProvider]:
        return list(self._providers.values())

    async def get_content_provider(self, provider_id: int) -> Optional[ContentProvider]:
        return self._providers.get(provider_id)

    async def create_content_provider(self, provider: ContentProviderCreate) -> ContentProvider:
        return self._insert(self._providers, "provider", ContentProvider, provider)

    async def get_courses(self) -> List[Course]:
        return list(self._courses.values())

    async def get_course(self, course_id: int) -> Optional[Course]:
        return self._courses.get(course_id)

    async def create_course(self, course: CourseCreate) -> Course:
        return self._insert(self._courses, "course", Course, course)

    async def get_modules_by_course(self, course_id: int) -> List[Module]:
        modules = [m for m in self._modules.values() if m.course_id == course_id]
        return sorted(modules, key=lambda m: m.position)

    async def get_module(self, module_id: int) -> Optional[Module]:
        return self._modules.get(module_id)

    async def create_module(self, module: ModuleCreate) -> Module:
        return self._insert(self._modules, "module", Module, module)

    async def get_transcript(self, module_id: int, language: LanguageCode) -> Optional[Transcript]:
        for transcript in self._transcripts.values():
            if transcript.module_id == module_id and transcript.language_code == language:
                return transcript
        return None

    async def create_transcript(self, transcript: TranscriptCreate) -> Transcript:
        return self._insert(self._transcripts, "transcript", Transcript, transcript)

    async def get_quiz_questions(self, module_id: int, language: LanguageCode) -> List[QuizQuestion]:
        return [
            q for q in self._questions.values()
            if q.module_id == module_id and q.language_code == language
        ]

    async def create_quiz_question(self, question: QuizQuestionCreate) -> QuizQuestion:
        return self._insert(self._questions, "question", QuizQuestion, question)

    async def get_learning_paths(self) -> List[LearningPath]:
        return list(self._paths.values())

    async def get_learning_path(self, path_id: int) -> Optional[LearningPath]:
        return self._paths.get(path_id)

    async def create_learning_path(self, path: LearningPathCreate) -> LearningPath:
        return self._insert(self._paths, "path", LearningPath, path)

    async def is_empty(self) -> bool:
        return not self._courses


def _row_values(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _to_record(model: Type[RecordT], row) -> Optional[RecordT]:
    if row is None:
        return None
    return model.model_validate(_row_values(row))


def _to_columns(data: BaseModel) -> Dict[str, Any]:
    # JSON columns hold the camelCase wire shape
    values = data.model_dump(mode="json")
    if "segments" in values:
        values["segments"] = [s.model_dump(by_alias=True) for s in data.segments]
    return values


class DatabaseStorage(Storage):
    """SQLAlchemy async storage over the relational catalogue schema."""

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]):
        self.engine = engine
        self.session_factory = session_factory

    async def _all(self, model: Type[RecordT], statement) -> List[RecordT]:
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return [_to_record(model, row) for row in result.scalars().all()]

    async def _get(self, model: Type[RecordT], row_type, row_id: int) -> Optional[RecordT]:
        async with self.session_factory() as session:
            return _to_record(model, await session.get(row_type, row_id))

    async def _add(self, model: Type[RecordT], row_type, data: BaseModel) -> RecordT:
        async with self.session_factory() as session:
            row = row_type(**_to_columns(data))
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_record(model, row)

    async def get_content_providers(self) -> List[ContentProvider]:
        return await self._all(ContentProvider, select(ContentProviderRow).order_by(ContentProviderRow.id))

    async def get_content_provider(self, provider_id: int) -> Optional[ContentProvider]:
        return await self._get(ContentProvider, ContentProviderRow, provider_id)

    async def create_content_provider(self, provider: ContentProviderCreate) -> ContentProvider:
        return await self._add(ContentProvider, ContentProviderRow, provider)

    async def get_courses(self) -> List[Course]:
        return await self._all(Course, select(CourseRow).order_by(CourseRow.id))

    async def get_course(self, course_id: int) -> Optional[Course]:
        return await self._get(Course, CourseRow, course_id)

    async def create_course(self, course: CourseCreate) -> Course:
        return await self._add(Course, CourseRow, course)

    async def get_modules_by_course(self, course_id: int) -> List[Module]:
        statement = (
            select(ModuleRow)
            .where(ModuleRow.course_id == course_id)
            .order_by(ModuleRow.position, ModuleRow.id)
        )
        return await self._all(Module, statement)

    async def get_module(self, module_id: int) -> Optional[Module]:
        return await self._get(Module, ModuleRow, module_id)

    async def create_module(self, module: ModuleCreate) -> Module:
        return await self._add(Module, ModuleRow, module)

    async def get_transcript(self, module_id: int, language: LanguageCode) -> Optional[Transcript]:
        statement = (
            select(TranscriptRow)
            .where(TranscriptRow.module_id == module_id, TranscriptRow.language_code == language.value)
            .order_by(TranscriptRow.id)
            .limit(1)
        )
        found = await self._all(Transcript, statement)
        return found[0] if found else None

    async def create_transcript(self, transcript: TranscriptCreate) -> Transcript:
        return await self._add(Transcript, TranscriptRow, transcript)

    async def get_quiz_questions(self, module_id: int, language: LanguageCode) -> List[QuizQuestion]:
        statement = (
            select(QuizQuestionRow)
            .where(QuizQuestionRow.module_id == module_id, QuizQuestionRow.language_code == language.value)
            .order_by(QuizQuestionRow.id)
        )
        return await self._all(QuizQuestion, statement)

    async def create_quiz_question(self, question: QuizQuestionCreate) -> QuizQuestion:
        return await self._add(QuizQuestion, QuizQuestionRow, question)

    async def get_learning_paths(self) -> List[LearningPath]:
        return await self._all(LearningPath, select(LearningPathRow).order_by(LearningPathRow.id))

    async def get_learning_path(self, path_id: int) -> Optional[LearningPath]:
        return await self._get(LearningPath, LearningPathRow, path_id)

    async def create_learning_path(self, path: LearningPathCreate) -> LearningPath:
        return await self._add(LearningPath, LearningPathRow, path)

    async def is_empty(self) -> bool:
        async with self.session_factory() as session:
            total = await session.scalar(select(func.count()).select_from(CourseRow))
        return not total

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
