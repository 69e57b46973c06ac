"""
Shared service instances and FastAPI dependency providers
"""
from typing import Optional

from fastapi import Query

from globalacademy.config import Settings, StorageBackend, TranslationBackendKind, settings
from globalacademy.core.cache import TranslationCache
from globalacademy.core.content import ContentService
from globalacademy.core.exceptions import ValidationError
from globalacademy.core.generator import ContentGenerator
from globalacademy.core.llm import get_llm_provider
from globalacademy.core.logging import get_logger
from globalacademy.core.translation import TranslationService, build_translation_backend
from globalacademy.db import create_engine_for, create_schema, create_session_factory
from globalacademy.seed import seed_demo_data
from globalacademy.storage import DatabaseStorage, MemoryStorage, Storage
from globalacademy.utils.language import LanguageCode, parse_language_code

logger = get_logger(__name__)

_storage: Optional[Storage] = None
_translation_cache: Optional[TranslationCache] = None
_translation_service: Optional[TranslationService] = None
_content_generator: Optional[ContentGenerator] = None


def build_storage(config: Settings) -> Storage:
    if config.storage_backend == StorageBackend.DATABASE:
        engine = create_engine_for(config)
        return DatabaseStorage(engine, create_session_factory(engine))
    return MemoryStorage()


async def prepare_storage(storage: Storage, config: Settings) -> None:
    """Create tables when needed and load the demo catalogue into empty storage"""
    if isinstance(storage, DatabaseStorage):
        await create_schema(storage.engine)
    if config.seed_demo_data and await storage.is_empty():
        await seed_demo_data(storage)


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        _storage = build_storage(settings)
        logger.info("Storage initialized", backend=settings.storage_backend.value)
    return _storage


def get_translation_cache() -> TranslationCache:
    global _translation_cache
    if _translation_cache is None:
        _translation_cache = TranslationCache(
            ttl_seconds=settings.translation_cache_ttl_seconds,
            max_entries=settings.translation_cache_max_entries,
            trim_to=settings.translation_cache_trim_to,
        )
    return _translation_cache


def get_translation_service() -> TranslationService:
    global _translation_service
    if _translation_service is None:
        provider = get_llm_provider() if settings.translation_backend == TranslationBackendKind.LLM else None
        backend = build_translation_backend(settings, llm_provider=provider)
        _translation_service = TranslationService(backend, get_translation_cache())
        logger.info("Translation service initialized", backend=backend.name)
    return _translation_service


def get_content_generator() -> ContentGenerator:
    global _content_generator
    if _content_generator is None:
        _content_generator = ContentGenerator(get_llm_provider())
    return _content_generator


def get_content_service() -> ContentService:
    return ContentService(
        storage=get_storage(),
        translator=get_translation_service(),
        generator=get_content_generator(),
    )


async def shutdown_services() -> None:
    global _storage, _translation_service
    if _translation_service is not None:
        aclose = getattr(_translation_service.backend, "aclose", None)
        if aclose is not None:
            await aclose()
        _translation_service = None
    if _storage is not None:
        await _storage.close()
        _storage = None


def language_param(language: Optional[str] = Query(default=None, description="Language code")) -> LanguageCode:
    """Resolve the ``language`` query parameter, rejecting unsupported codes"""
    try:
        return parse_language_code(language)
    except ValueError:
        raise ValidationError("Invalid language code", {"language": language})
