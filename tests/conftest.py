"""
Pytest configuration and fixtures for the content service tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from globalacademy.core.cache import TranslationCache
from globalacademy.core.content import ContentService
from globalacademy.core.generator import ContentGenerator
from globalacademy.core.llm import LLMProvider
from globalacademy.core.translation import TranslationBackend, TranslationService
from globalacademy.dependencies import get_content_generator, get_content_service
from globalacademy.main import app
from globalacademy.seed import seed_demo_data
from globalacademy.storage import MemoryStorage
from globalacademy.utils.language import LanguageCode

THIRTY_DAYS = 30 * 24 * 60 * 60


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBackend(TranslationBackend):
    """Tags text with the target language and records every call."""

    name = "recording"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[tuple] = []

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        self.calls.append((text, source, target))
        if self.fail:
            raise ConnectionError("translation backend unreachable")
        return f"{text} ({target.value})"


class GatedBackend(TranslationBackend):
    """Blocks every call until `expected` calls are in flight at the same time.

    Sequential callers time out and the service serves source text instead.
    """

    name = "gated"

    def __init__(self, expected: int, timeout: float = 1.0):
        self.expected = expected
        self.timeout = timeout
        self.in_flight = 0
        self.peak = 0
        self.gate = asyncio.Event()

    async def translate(self, text: str, source: LanguageCode, target: LanguageCode) -> str:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        if self.in_flight >= self.expected:
            self.gate.set()
        try:
            await asyncio.wait_for(self.gate.wait(), timeout=self.timeout)
        finally:
            self.in_flight -= 1
        return f"{text}!"


class FakeLLMProvider(LLMProvider):
    """Returns canned payloads per operation; an Exception value is raised instead."""

    model_name = "fake-model"

    def __init__(self, json_responses: Optional[Dict[str, Any]] = None, text_response: Any = "translated"):
        self.json_responses = json_responses or {}
        self.text_response = text_response
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt, system_prompt=None, operation="generate"):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "operation": operation})
        if isinstance(self.text_response, Exception):
            raise self.text_response
        return self.text_response

    async def generate_json(self, prompt, schema, system_prompt=None, operation="generate_json"):
        self.calls.append({
            "prompt": prompt,
            "schema": schema,
            "system_prompt": system_prompt,
            "operation": operation,
        })
        response = self.json_responses.get(operation, RuntimeError(f"no response for {operation}"))
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TranslationCache(ttl_seconds=THIRTY_DAYS, clock=clock)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def translator(backend, cache):
    return TranslationService(backend, cache)


@pytest.fixture
def llm():
    return FakeLLMProvider()


@pytest.fixture
def generator(llm):
    return ContentGenerator(llm)


@pytest.fixture
def storage():
    storage = MemoryStorage()
    asyncio.run(seed_demo_data(storage))
    return storage


@pytest.fixture
def content_service(storage, translator, generator):
    return ContentService(storage, translator, generator)


@pytest.fixture
def client(content_service, generator):
    """Test client wired to the seeded in-memory catalogue and fakes."""
    app.dependency_overrides[get_content_service] = lambda: content_service
    app.dependency_overrides[get_content_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()
