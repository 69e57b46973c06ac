"""
LLM provider using LangChain with support for multiple model vendors
"""
from typing import Dict, Any, Optional, List
from abc import ABC, abstractmethod
import json
import re
import time
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage, HumanMessage
from langchain_core.output_parsers import JsonOutputParser

from globalacademy.config import Settings, settings as default_settings
from globalacademy.core.exceptions import ConfigurationError, LLMError
from globalacademy.core.logging import get_logger, metrics_logger
from globalacademy.core.retry import llm_retry

logger = get_logger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    model_name: str = "unknown"

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: Optional[str] = None,
                       operation: str = "generate") -> str:
        """Generate text response"""

    @abstractmethod
    async def generate_json(self, prompt: str, schema: Dict[str, Any],
                            system_prompt: Optional[str] = None,
                            operation: str = "generate_json") -> Dict[str, Any]:
        """Generate structured JSON response"""


def build_messages(prompt: str, system_prompt: Optional[str] = None) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))
    messages.append(HumanMessage(content=prompt))
    return messages


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences and extract JSON body if present."""
    if not text:
        return text
    fence_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.IGNORECASE)
    if fence_match:
        return fence_match.group(1).strip()
    return text.strip()


def coerce_to_json(raw: str) -> Dict[str, Any]:
    """Best-effort conversion of model output to a JSON object."""
    candidate = strip_code_fences((raw or "").strip())
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        start = candidate.find('{')
        end = candidate.rfind('}')
        if start == -1 or end <= start:
            raise LLMError("Model output is not JSON", {"output": candidate[:200]})
        try:
            parsed = json.loads(candidate[start:end + 1])
        except json.JSONDecodeError as e:
            raise LLMError("Model output is not JSON", {"output": candidate[:200]}) from e
    if not isinstance(parsed, dict):
        raise LLMError("Model output is not a JSON object", {"type": type(parsed).__name__})
    return parsed


def _content_text(content: Any) -> str:
    # Some chat models return a list of content blocks instead of a string
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return str(content or "")


class LangChainLLMProvider(LLMProvider):
    """LangChain-based LLM provider with multi-model support.

    The chat model is created on first use so the service can boot without
    credentials; generation then fails and callers fall back.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.model_name = self.config.llm_model
        self._model: Optional[BaseChatModel] = None
        self._json_model = None
        self.json_parser = JsonOutputParser()
        if not self._api_key_for(self.model_name):
            logger.warning("No API key configured for LLM model, generated content will use fallbacks",
                           model=self.model_name)

    def _api_key_for(self, model: str) -> Optional[str]:
        lowered = model.lower()
        if "gpt" in lowered or re.match(r"o\d", lowered):
            return self.config.openai_api_key
        if "claude" in lowered:
            return self.config.anthropic_api_key
        return self.config.gemini_api_key

    def _initialize_model(self) -> BaseChatModel:
        """Initialize the appropriate LLM based on configuration"""
        model = self.model_name
        api_key = self._api_key_for(model)
        if not api_key:
            raise ConfigurationError("Missing API key for LLM model", {"model": model})

        lowered = model.lower()
        if "claude" in lowered:
            return ChatAnthropic(
                model=model,
                anthropic_api_key=api_key,
                temperature=self.config.llm_temperature,
                max_tokens=self.config.llm_max_tokens,
                timeout=self.config.llm_timeout,
                max_retries=1
            )
        if "gemini" in lowered:
            return ChatGoogleGenerativeAI(
                model=model,
                google_api_key=api_key,
                temperature=self.config.llm_temperature,
                max_output_tokens=self.config.llm_max_tokens,
                timeout=self.config.llm_timeout,
                max_retries=1
            )
        return ChatOpenAI(
            model=model,
            openai_api_key=api_key,
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
            timeout=self.config.llm_timeout,
            max_retries=1
        )

    @property
    def model(self) -> BaseChatModel:
        if self._model is None:
            self._model = self._initialize_model()
            logger.info("LLM model initialized", model=self.model_name)
        return self._model

    @property
    def json_model(self):
        """Chat model constrained to a single JSON object where the vendor supports it."""
        if self._json_model is None:
            model = self.model
            if isinstance(model, ChatOpenAI):
                self._json_model = model.bind(response_format={"type": "json_object"})
            else:
                self._json_model = model
        return self._json_model

    @llm_retry
    async def _invoke(self, runnable, messages: List[BaseMessage]) -> str:
        response = await runnable.ainvoke(messages)
        return _content_text(response.content)

    async def _timed_invoke(self, runnable, messages: List[BaseMessage], operation: str,
                            prompt_length: int) -> str:
        metrics_logger.log_llm_request(self.model_name, operation, prompt_length)
        start = time.time()
        try:
            content = await self._invoke(runnable, messages)
        except Exception:
            metrics_logger.log_llm_complete(self.model_name, operation, time.time() - start, success=False)
            raise
        metrics_logger.log_llm_complete(self.model_name, operation, time.time() - start)
        return content

    async def generate(self, prompt: str, system_prompt: Optional[str] = None,
                       operation: str = "generate") -> str:
        """Generate text response using LangChain"""
        messages = build_messages(prompt, system_prompt)
        content = await self._timed_invoke(self.model, messages, operation, len(prompt))
        return content.strip()

    async def generate_json(
        self,
        prompt: str,
        schema: Dict[str, Any],
        system_prompt: Optional[str] = None,
        operation: str = "generate_json"
    ) -> Dict[str, Any]:
        """Generate structured JSON response"""
        enhanced_prompt = (
            f"{prompt}\n\n"
            f"Respond with valid JSON matching this schema (no comments, no prose, no code fences):\n"
            f"{json.dumps(schema, indent=2, ensure_ascii=False)}\n"
            f"Output ONLY the JSON object."
        )
        messages = build_messages(enhanced_prompt, system_prompt)
        content = await self._timed_invoke(self.json_model, messages, operation, len(enhanced_prompt))
        try:
            parsed = self.json_parser.parse(content)
        except Exception:
            parsed = None
        if not isinstance(parsed, dict):
            # Fallback to tolerant parsing
            return coerce_to_json(content)
        return parsed


_llm_provider: Optional[LLMProvider] = None


def get_llm_provider() -> LLMProvider:
    """Get singleton LLM provider instance"""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = LangChainLLMProvider()
    return _llm_provider
