from enum import Enum
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from globalacademy.utils.language import LanguageCode, parse_language_code


# Sentinel id for records computed per request and never persisted
VIRTUAL_ID = -1


class CamelModel(BaseModel):
    """Serialised as camelCase on the wire, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ======================= Stored records =======================

class ContentSegment(CamelModel):
    start_time: float
    end_time: float
    text: str


class ContentProviderCreate(CamelModel):
    name: str
    description: Optional[str] = None
    api_endpoint: Optional[str] = None


class ContentProvider(ContentProviderCreate):
    id: int


class CourseCreate(CamelModel):
    title: str
    description: str
    instructor: str
    thumbnail_url: Optional[str] = None
    provider_id: int
    rating: int = Field(default=0, ge=0, le=5)
    rating_count: int = 0
    is_new: bool = False


class Course(CourseCreate):
    id: int


class ModuleCreate(CamelModel):
    course_id: int
    title: str
    description: Optional[str] = None
    position: int
    video_url: str
    duration_seconds: int


class Module(ModuleCreate):
    id: int


class TranscriptCreate(CamelModel):
    module_id: int
    language_code: LanguageCode = LanguageCode.EN
    segments: List[ContentSegment] = Field(default_factory=list)


class Transcript(TranscriptCreate):
    id: int


class QuizQuestionCreate(CamelModel):
    module_id: int
    question_text: str
    options: List[str]
    correct_option_index: int
    explanation: Optional[str] = None
    language_code: LanguageCode = LanguageCode.EN
    appearance_time: Optional[int] = None
    difficulty: int = Field(default=1, ge=1, le=3)


class QuizQuestion(QuizQuestionCreate):
    id: int


class LearningPathCreate(CamelModel):
    title: str
    description: Optional[str] = None
    icon: str
    courses: List[int] = Field(default_factory=list)


class LearningPath(LearningPathCreate):
    id: int


# ======================= Localized views =======================

class LocalizedCourse(CamelModel):
    id: int
    title: str
    description: str
    instructor: str
    thumbnail_url: Optional[str] = None
    provider_id: int
    provider_name: str
    rating: int = 0
    rating_count: int = 0
    is_new: bool = False


class LocalizedModuleSummary(CamelModel):
    id: int
    course_id: int
    title: str
    description: str
    position: int
    video_url: str
    duration_seconds: int


class LocalizedCourseDetail(LocalizedCourse):
    modules: List[LocalizedModuleSummary] = Field(default_factory=list)


class LocalizedTranscript(CamelModel):
    id: int
    language_code: LanguageCode
    segments: List[ContentSegment]


class LocalizedModule(LocalizedModuleSummary):
    transcript: LocalizedTranscript


class LocalizedQuizQuestion(CamelModel):
    id: int
    module_id: int
    question_text: str
    options: List[str]
    correct_option_index: int
    explanation: str = ""
    appearance_time: Optional[int] = None
    difficulty: int = 1


class LocalizedLearningPath(CamelModel):
    id: int
    title: str
    description: str
    icon: str
    courses: List[int]


# ======================= Generated content =======================

class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"


class MultipleChoiceQuestion(CamelModel):
    question_text: str
    options: List[str] = Field(min_length=2)
    correct_option_index: int
    explanation: str = ""

    @model_validator(mode="after")
    def check_correct_option(self):
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError("correct_option_index must point at one of the options")
        return self


class ShortAnswerQuestion(CamelModel):
    question_text: str
    sample_answer: str
    key_points: List[str] = Field(min_length=1)
    explanation: str = ""


GeneratedQuestion = Union[MultipleChoiceQuestion, ShortAnswerQuestion]


class UserPerformance(CamelModel):
    correct_answers: int = Field(ge=0)
    total_questions: int = Field(ge=0)


class QuestionGenerationRequest(CamelModel):
    transcript: str
    difficulty: int = Field(default=1, ge=1, le=3)
    previous_questions: List[str] = Field(default_factory=list)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    language: LanguageCode = LanguageCode.EN
    user_performance: Optional[UserPerformance] = None


class SummarizeRequest(CamelModel):
    transcript: str
    language: LanguageCode = LanguageCode.EN
    section_start: Optional[float] = None
    section_end: Optional[float] = None


class SummaryResult(CamelModel):
    summary: str
    key_points: List[str] = Field(default_factory=list)


# ======================= API request bodies =======================

class LanguageBody(CamelModel):
    language: LanguageCode = LanguageCode.EN

    @field_validator("language", mode="before")
    def parse_language(cls, v):
        return parse_language_code(v)


class FeedbackRequest(LanguageBody):
    question: str
    user_answer: str
    correct_answer: str
    context: str


class FeedbackResponse(CamelModel):
    message: str
    is_correct: bool
    explanation: str


class GenerateQuestionBody(LanguageBody):
    difficulty: int = Field(default=1, ge=1, le=3)
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE


class SummarizeBody(LanguageBody):
    section_start: Optional[float] = Field(default=None, ge=0)
    section_end: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_section(self):
        if (self.section_start is None) != (self.section_end is None):
            raise ValueError("sectionStart and sectionEnd must be given together")
        if (
            self.section_start is not None
            and self.section_end is not None
            and self.section_end < self.section_start
        ):
            raise ValueError("sectionEnd must not be before sectionStart")
        return self
