"""
Translation service with a TTL cache in front of a swappable backend
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence
import asyncio

import httpx

from globalacademy.config import Settings, TranslationBackendKind
from globalacademy.core.cache import CachedTranslation, TranslationCache
from globalacademy.core.exceptions import TranslationBackendError
from globalacademy.core.llm import LLMProvider
from globalacademy.core.logging import get_logger, metrics_logger
from globalacademy.core.retry import CircuitBreaker, RetryWithBackoff
from globalacademy.utils.language import LanguageCode, SOURCE_LANGUAGE, language_name

logger = get_logger(__name__)


class TranslationBackend(ABC):
    """Anything that can translate text between two supported languages."""

    name: str = "backend"

    @abstractmethod
    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        """Return ``text`` translated from ``source`` into ``target``."""


# Seed phrases served without any external API
DEMO_TRANSLATIONS: Dict[str, Dict[LanguageCode, str]] = {
    "Welcome to Introduction to AI": {
        LanguageCode.EN: "Welcome to Introduction to AI",
        LanguageCode.ES: "Bienvenido a Introducción a la IA",
        LanguageCode.FR: "Bienvenue à l'Introduction à l'IA",
        LanguageCode.ZH: "欢迎来到人工智能介绍",
        LanguageCode.RU: "Добро пожаловать в Введение в ИИ",
    },
    "Machine Learning Basics": {
        LanguageCode.EN: "Machine Learning Basics",
        LanguageCode.ES: "Fundamentos de Aprendizaje Automático",
        LanguageCode.FR: "Bases de l'Apprentissage Automatique",
        LanguageCode.ZH: "机器学习基础",
        LanguageCode.RU: "Основы Машинного Обучения",
    },
    "Artificial Intelligence": {
        LanguageCode.EN: "Artificial Intelligence",
        LanguageCode.ES: "Inteligencia Artificial",
        LanguageCode.FR: "Intelligence Artificielle",
        LanguageCode.ZH: "人工智能",
        LanguageCode.RU: "Искусственный Интеллект",
    },
    "Introduction to AI": {
        LanguageCode.EN: "Introduction to AI",
        LanguageCode.ES: "Introducción a la IA",
        LanguageCode.FR: "Introduction à l'IA",
        LanguageCode.ZH: "人工智能简介",
        LanguageCode.RU: "Введение в ИИ",
    },
}


class FallbackTranslationBackend(TranslationBackend):
    """Deterministic lookup table; unknown strings come back tagged ``[lang] text``."""

    name = "fallback"

    def __init__(self, table: Optional[Dict[str, Dict[LanguageCode, str]]] = None):
        self.table = DEMO_TRANSLATIONS if table is None else table

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        known = self.table.get(text, {}).get(target)
        if known:
            return known
        return f"[{target.value}] {text}"


class HTTPTranslationBackend(TranslationBackend):
    """Client for a LibreTranslate-compatible ``POST /translate`` endpoint."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        max_attempts: int = 2,
        client: Optional[httpx.AsyncClient] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._breaker = breaker or CircuitBreaker("translation-http", failure_threshold=5, recovery_timeout=60)
        self._request = self._breaker(
            RetryWithBackoff(max_attempts=max_attempts, initial_delay=0.5, max_delay=5.0)(self._request_once)
        )

    async def _request_once(self, payload: Dict[str, str]) -> str:
        try:
            resp = await self._client.post(f"{self.base_url}/translate", json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TranslationBackendError("Translation request failed", {"error": str(e)}) from e
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            raise TranslationBackendError("Translation response has no translatedText", {"body": str(data)[:200]})
        return translated

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        payload = {"q": text, "source": source.value, "target": target.value, "format": "text"}
        if self.api_key:
            payload["api_key"] = self.api_key
        return await self._request(payload)

    async def aclose(self) -> None:
        await self._client.aclose()


class LLMTranslationBackend(TranslationBackend):
    """Translation through the configured chat model."""

    name = "llm"

    def __init__(self, provider: LLMProvider, breaker: Optional[CircuitBreaker] = None):
        self.provider = provider
        self._breaker = breaker or CircuitBreaker("translation-llm", failure_threshold=5, recovery_timeout=60)
        self._generate = self._breaker(self.provider.generate)

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        system_prompt = (
            "You are a professional translator for online course material. "
            f"Translate the user's text from {language_name(source)} to {language_name(target)}. "
            "Preserve meaning, tone, technical terms and formatting. "
            "Reply with the translation only."
        )
        translated = await self._generate(text, system_prompt=system_prompt, operation="translate")
        if not translated:
            raise TranslationBackendError("Empty translation from model", {"target": target.value})
        return translated


class TranslationService:
    """Cache-first translation that never raises because of a backend failure."""

    def __init__(self, backend: TranslationBackend, cache: TranslationCache):
        self.backend = backend
        self.cache = cache

    async def translate(
        self,
        text: str,
        target: LanguageCode,
        source: LanguageCode = SOURCE_LANGUAGE,
    ) -> str:
        source = LanguageCode(source)
        target = LanguageCode(target)

        if source == target:
            metrics_logger.log_translation("identity", source.value, target.value)
            return text
        if not text or not text.strip():
            return text

        cached = self.cache.lookup(text, source, target)
        if cached is not None:
            metrics_logger.log_translation("hit", source.value, target.value)
            return cached

        try:
            translated = await self.backend.translate(text, source, target)
        except Exception as e:
            metrics_logger.log_translation("fallback", source.value, target.value)
            logger.error("Translation failed, serving source text",
                         backend=self.backend.name,
                         source=source.value,
                         target=target.value,
                         error=str(e),
                         error_type=type(e).__name__)
            return text

        self.cache.store(CachedTranslation(
            source_text=text,
            source_language=source,
            target_language=target,
            translated_text=translated,
            timestamp=self.cache.now(),
        ))
        metrics_logger.log_translation("miss", source.value, target.value)
        return translated

    async def translate_many(
        self,
        texts: Sequence[str],
        target: LanguageCode,
        source: LanguageCode = SOURCE_LANGUAGE,
    ) -> List[str]:
        """Translate independent strings concurrently, preserving order."""
        return list(await asyncio.gather(*(self.translate(t, target, source) for t in texts)))


def build_translation_backend(config: Settings, llm_provider: Optional[LLMProvider] = None) -> TranslationBackend:
    kind = config.translation_backend
    if kind == TranslationBackendKind.HTTP:
        if config.translation_api_url:
            return HTTPTranslationBackend(
                base_url=config.translation_api_url,
                api_key=config.translation_api_key,
                timeout=config.translation_timeout,
                max_attempts=config.translation_max_retries,
            )
        logger.warning("No translation API URL found. Translation service will use fallback methods.")
    elif kind == TranslationBackendKind.LLM:
        if llm_provider is not None:
            return LLMTranslationBackend(llm_provider)
        logger.warning("No LLM provider available for translation, using fallback methods.")
    return FallbackTranslationBackend()
