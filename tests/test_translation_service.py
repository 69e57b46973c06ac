"""Tests for TranslationService and the translation backends."""

import json

import httpx
import pytest

from globalacademy.config import Settings, TranslationBackendKind
from globalacademy.core.exceptions import CircuitOpenError, TranslationBackendError
from globalacademy.core.retry import CircuitBreaker, CircuitState
from globalacademy.core.translation import (
    FallbackTranslationBackend,
    HTTPTranslationBackend,
    LLMTranslationBackend,
    TranslationService,
    build_translation_backend,
)
from globalacademy.utils.language import LanguageCode

from conftest import THIRTY_DAYS, FakeLLMProvider, GatedBackend, RecordingBackend

EN, ES, FR, ZH = LanguageCode.EN, LanguageCode.ES, LanguageCode.FR, LanguageCode.ZH


class TestTranslationService:
    """Cache-first translation with passthrough on failure."""

    async def test_same_language_is_identity(self, translator, backend, cache):
        for lang in LanguageCode:
            assert await translator.translate("Hello", lang, lang) == "Hello"
        assert backend.calls == []
        assert len(cache) == 0

    async def test_miss_calls_backend_and_caches(self, translator, backend, cache):
        result = await translator.translate("Hello", ES)
        assert result == "Hello (es)"
        assert backend.calls == [("Hello", EN, ES)]
        assert cache.lookup("Hello", EN, ES) == "Hello (es)"

    async def test_second_call_is_served_from_cache(self, translator, backend):
        first = await translator.translate("Hello", FR)
        second = await translator.translate("Hello", FR)
        assert first == second
        assert len(backend.calls) == 1

    async def test_expired_entry_goes_back_to_backend(self, translator, backend, clock):
        await translator.translate("Hello", FR)
        clock.advance(THIRTY_DAYS + 1)
        await translator.translate("Hello", FR)
        assert len(backend.calls) == 2

    async def test_plain_string_codes_are_accepted(self, translator, backend):
        assert await translator.translate("Hello", "zh", "en") == "Hello (zh)"
        assert await translator.translate("Hello", ZH) == "Hello (zh)"
        assert len(backend.calls) == 1

    async def test_empty_text_skips_backend(self, translator, backend):
        assert await translator.translate("", ES) == ""
        assert backend.calls == []

    async def test_backend_failure_returns_source_text(self, cache):
        failing = RecordingBackend(fail=True)
        service = TranslationService(failing, cache)

        assert await service.translate("Hello", ES) == "Hello"
        assert len(cache) == 0

        # Failures are not cached; the next request tries again
        assert await service.translate("Hello", ES) == "Hello"
        assert len(failing.calls) == 2

    async def test_translate_many_preserves_order(self, translator):
        texts = ["one", "two", "three"]
        assert await translator.translate_many(texts, ES) == ["one (es)", "two (es)", "three (es)"]

    async def test_translate_many_runs_concurrently(self, cache):
        backend = GatedBackend(expected=3)
        service = TranslationService(backend, cache)
        assert await service.translate_many(["a", "b", "c"], ES) == ["a!", "b!", "c!"]
        assert backend.peak == 3

    async def test_translate_many_with_failing_backend(self, cache):
        service = TranslationService(RecordingBackend(fail=True), cache)
        assert await service.translate_many(["a", "b"], FR) == ["a", "b"]


class TestFallbackBackend:
    """Deterministic lookup table."""

    async def test_known_phrase(self):
        backend = FallbackTranslationBackend()
        assert await backend.translate("Introduction to AI", EN, ES) == "Introducción a la IA"
        assert await backend.translate("Artificial Intelligence", EN, ZH) == "人工智能"

    async def test_unknown_phrase_is_tagged(self):
        backend = FallbackTranslationBackend()
        assert await backend.translate("Hello", EN, FR) == "[fr] Hello"

    async def test_is_deterministic_through_service(self, cache):
        service = TranslationService(FallbackTranslationBackend(), cache)
        assert await service.translate("Hello", ES) == "[es] Hello"
        assert await service.translate("Machine Learning Basics", FR) == "Bases de l'Apprentissage Automatique"


def make_http_backend(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HTTPTranslationBackend("http://translate.test/", client=client, **kwargs)


class TestHTTPBackend:
    """LibreTranslate-compatible HTTP client."""

    async def test_posts_payload_and_reads_translation(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"translatedText": "Hola"})

        backend = make_http_backend(handler, api_key="secret")
        assert await backend.translate("Hello", EN, ES) == "Hola"
        assert seen["url"] == "http://translate.test/translate"
        assert seen["body"] == {
            "q": "Hello",
            "source": "en",
            "target": "es",
            "format": "text",
            "api_key": "secret",
        }
        await backend.aclose()

    async def test_error_status_raises_backend_error(self):
        backend = make_http_backend(lambda request: httpx.Response(500), max_attempts=1)
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", EN, ES)

    async def test_missing_field_raises_backend_error(self):
        backend = make_http_backend(lambda request: httpx.Response(200, json={"error": "nope"}), max_attempts=1)
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", EN, ES)

    async def test_service_passes_through_on_http_failure(self, cache):
        backend = make_http_backend(lambda request: httpx.Response(503), max_attempts=1)
        service = TranslationService(backend, cache)
        assert await service.translate("Hello", ES) == "Hello"

    async def test_circuit_opens_after_repeated_failures(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        breaker = CircuitBreaker("test", failure_threshold=2, recovery_timeout=60)
        backend = make_http_backend(handler, max_attempts=1, breaker=breaker)
        for _ in range(2):
            with pytest.raises(TranslationBackendError):
                await backend.translate("Hello", EN, ES)

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await backend.translate("Hello", EN, ES)
        assert len(calls) == 2


class TestLLMBackend:
    """Translation through the chat model."""

    async def test_uses_translate_operation(self):
        provider = FakeLLMProvider(text_response="Bonjour")
        backend = LLMTranslationBackend(provider)
        assert await backend.translate("Hello", EN, FR) == "Bonjour"
        call = provider.calls[0]
        assert call["operation"] == "translate"
        assert "Français" in call["system_prompt"]

    async def test_empty_reply_is_an_error(self):
        backend = LLMTranslationBackend(FakeLLMProvider(text_response=""))
        with pytest.raises(TranslationBackendError):
            await backend.translate("Hello", EN, FR)


class TestBuildBackend:
    """Backend selection from settings."""

    def test_default_is_fallback(self):
        assert isinstance(build_translation_backend(Settings(translation_backend=TranslationBackendKind.FALLBACK)),
                          FallbackTranslationBackend)

    def test_http_without_url_falls_back(self):
        config = Settings(translation_backend=TranslationBackendKind.HTTP, translation_api_url=None)
        assert isinstance(build_translation_backend(config), FallbackTranslationBackend)

    def test_http_with_url(self):
        config = Settings(translation_backend=TranslationBackendKind.HTTP,
                          translation_api_url="http://translate.test")
        assert isinstance(build_translation_backend(config), HTTPTranslationBackend)

    def test_llm_backend_needs_provider(self):
        config = Settings(translation_backend=TranslationBackendKind.LLM)
        assert isinstance(build_translation_backend(config), FallbackTranslationBackend)
        assert isinstance(build_translation_backend(config, FakeLLMProvider()), LLMTranslationBackend)
