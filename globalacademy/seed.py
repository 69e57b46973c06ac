"""
Demo catalogue loaded into empty storage at startup
"""
from globalacademy.core.logging import get_logger
from globalacademy.schemas import (
    ContentProviderCreate,
    ContentSegment,
    CourseCreate,
    LearningPathCreate,
    ModuleCreate,
    QuizQuestionCreate,
    TranscriptCreate,
)
from globalacademy.storage import Storage
from globalacademy.utils.language import LanguageCode

logger = get_logger(__name__)


INTRO_TRANSCRIPT = [
    (0, 10, "Welcome to Introduction to AI. In this course, we'll explore the fascinating world of "
            "artificial intelligence."),
    (10, 20, "Artificial Intelligence is a broad field that encompasses various approaches to creating "
             "machines that can perform tasks that typically require human intelligence."),
    (20, 30, "The field has evolved significantly since its inception in the 1950s, with recent advances "
             "in deep learning revolutionizing what's possible."),
]

ML_APPROACHES_TRANSCRIPT = [
    (300, 320, "Machine learning algorithms can be broadly categorized into three types: supervised learning, "
               "unsupervised learning, and reinforcement learning. Each serves a different purpose in the AI "
               "ecosystem."),
    (325, 345, "In supervised learning, the algorithm is trained on a labeled dataset, which means we provide "
               "both the input data and the expected output. The algorithm learns to map the input to the "
               "output."),
    (350, 370, "Examples of supervised learning algorithms include linear regression, logistic regression, "
               "decision trees, and neural networks. These are commonly used for classification and "
               "regression tasks."),
    (375, 395, "Unsupervised learning, on the other hand, works with unlabeled data. The algorithm tries to "
               "find patterns or structure in the data without any explicit guidance on what to look for."),
]


def _segments(rows):
    return [ContentSegment(start_time=start, end_time=end, text=text) for start, end, text in rows]


async def seed_demo_data(storage: Storage) -> None:
    """Populate storage with one provider, four courses and three learning paths."""
    provider = await storage.create_content_provider(ContentProviderCreate(
        name="OpenAI Academy",
        description="High-quality educational content from OpenAI",
        api_endpoint="https://api.openai.com/academy",
    ))

    intro = await storage.create_course(CourseCreate(
        title="Introduction to AI",
        description="Learn about the fundamental concepts of artificial intelligence, including machine "
                    "learning, neural networks, and problem-solving approaches.",
        instructor="Dr. Sarah Johnson",
        thumbnail_url="https://images.unsplash.com/photo-1620712943543-bcc4688e7485",
        provider_id=provider.id,
        rating=4,
        rating_count=245,
        is_new=False,
    ))

    concepts = await storage.create_module(ModuleCreate(
        course_id=intro.id,
        title="Introduction to AI Concepts",
        description="Overview of key AI concepts and terminology",
        position=1,
        video_url="https://example.com/videos/ai-intro",
        duration_seconds=950,
    ))
    await storage.create_transcript(TranscriptCreate(
        module_id=concepts.id,
        language_code=LanguageCode.EN,
        segments=_segments(INTRO_TRANSCRIPT),
    ))
    await storage.create_quiz_question(QuizQuestionCreate(
        module_id=concepts.id,
        question_text="What is artificial intelligence primarily concerned with?",
        options=[
            "Building physical robots",
            "Creating systems that can perform tasks requiring human intelligence",
            "Developing faster computer processors",
            "Programming basic computer functions",
        ],
        correct_option_index=1,
        explanation="Artificial intelligence is focused on creating systems that can perform tasks that would "
                    "typically require human intelligence, such as visual perception, speech recognition, "
                    "decision-making, and language translation.",
        language_code=LanguageCode.EN,
        appearance_time=35,
        difficulty=1,
    ))

    await storage.create_module(ModuleCreate(
        course_id=intro.id,
        title="History of AI",
        description="The evolution of artificial intelligence research",
        position=2,
        video_url="https://example.com/videos/ai-history",
        duration_seconds=1200,
    ))
    await storage.create_module(ModuleCreate(
        course_id=intro.id,
        title="Basic Neural Networks",
        description="Understanding the foundation of modern AI",
        position=3,
        video_url="https://example.com/videos/neural-networks",
        duration_seconds=1500,
    ))

    approaches = await storage.create_module(ModuleCreate(
        course_id=intro.id,
        title="Machine Learning Approaches",
        description="Different types of machine learning and when to use them",
        position=4,
        video_url="https://example.com/videos/ml-approaches",
        duration_seconds=945,
    ))
    await storage.create_transcript(TranscriptCreate(
        module_id=approaches.id,
        language_code=LanguageCode.EN,
        segments=_segments(ML_APPROACHES_TRANSCRIPT),
    ))
    await storage.create_quiz_question(QuizQuestionCreate(
        module_id=approaches.id,
        question_text="Which type of machine learning is used when we have labeled data for training?",
        options=[
            "Unsupervised Learning",
            "Supervised Learning",
            "Reinforcement Learning",
            "Transfer Learning",
        ],
        correct_option_index=1,
        explanation="Supervised learning uses labeled data where the model learns to map inputs to known "
                    "outputs. This approach is suitable for classification and regression tasks.",
        language_code=LanguageCode.EN,
        appearance_time=345,
        difficulty=1,
    ))

    ml_basics = await storage.create_course(CourseCreate(
        title="Machine Learning Basics",
        description="Introduction to machine learning algorithms and their applications in solving "
                    "real-world problems.",
        instructor="Dr. Michael Chen",
        thumbnail_url="https://images.unsplash.com/photo-1594904351111-a072f80b1a71",
        provider_id=provider.id,
        rating=4,
        rating_count=128,
        is_new=True,
    ))
    neural = await storage.create_course(CourseCreate(
        title="Neural Networks",
        description="Explore the architecture and mathematics behind neural networks and deep learning models.",
        instructor="Prof. James Wilson",
        thumbnail_url="https://images.unsplash.com/photo-1555949963-aa79dcee981c",
        provider_id=provider.id,
        rating=5,
        rating_count=245,
        is_new=False,
    ))
    nlp = await storage.create_course(CourseCreate(
        title="Natural Language Processing",
        description="Learn how machines understand, interpret, and generate human language.",
        instructor="Dr. Emily Rodriguez",
        thumbnail_url="https://images.unsplash.com/photo-1531482615713-2afd69097998",
        provider_id=provider.id,
        rating=4,
        rating_count=176,
        is_new=False,
    ))

    await storage.create_learning_path(LearningPathCreate(
        title="Artificial Intelligence",
        description="A comprehensive path to master AI fundamentals",
        icon="blur_on",
        courses=[intro.id, neural.id, nlp.id],
    ))
    await storage.create_learning_path(LearningPathCreate(
        title="Machine Learning",
        description="Focused learning path for machine learning specialists",
        icon="psychology",
        courses=[ml_basics.id, neural.id],
    ))
    await storage.create_learning_path(LearningPathCreate(
        title="Deep Learning",
        description="Advanced techniques in neural networks and deep learning",
        icon="device_hub",
        courses=[neural.id, nlp.id],
    ))

    logger.info("Demo data seeded", provider_id=provider.id, courses=4, learning_paths=3)
