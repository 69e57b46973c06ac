"""
Relational schema for course content
"""
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ContentProviderRow(Base):
    __tablename__ = "content_providers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    api_endpoint = Column(Text, nullable=True)


class CourseRow(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    instructor = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    provider_id = Column(Integer, ForeignKey("content_providers.id"), nullable=False, index=True)
    rating = Column(Integer, default=0)  # 0-5
    rating_count = Column(Integer, default=0)
    is_new = Column(Boolean, default=False)


class ModuleRow(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)
    video_url = Column(Text, nullable=False)
    duration_seconds = Column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_module_course_position", "course_id", "position"),
    )


class TranscriptRow(Base):
    __tablename__ = "transcripts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False)
    language_code = Column(String(8), nullable=False, default="en")
    # [{startTime, endTime, text}, ...]
    segments = Column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_transcript_module_language", "module_id", "language_code"),
    )


class QuizQuestionRow(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)
    correct_option_index = Column(Integer, nullable=False)
    explanation = Column(Text, nullable=True)
    language_code = Column(String(8), nullable=False, default="en")
    appearance_time = Column(Integer, nullable=True)  # seconds into the video
    difficulty = Column(Integer, default=1)  # 1-3

    __table_args__ = (
        Index("idx_question_module_language", "module_id", "language_code"),
    )


class LearningPathRow(Base):
    __tablename__ = "learning_paths"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(Text, nullable=False)
    # Ordered course ids
    courses = Column(JSON, nullable=False)
