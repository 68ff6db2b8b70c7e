"""LLM provider implementations.

Each provider answers a single non-streaming chat completion. Clients are
created lazily so that constructing a provider never touches the network.
"""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from task_search.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "base"
    default_model: str | None = None

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._client: Any = None

    def resolve_model(self, model: str | None) -> str:
        """Use the provider's own default when given none or another vendor's model name."""
        requested = model or self.settings.default_llm_model
        if self.default_model and requested.startswith("gpt-"):
            return self.default_model
        return requested

    def _log_completion(self, model: str, started: float, tokens: int | None = None) -> None:
        logger.debug(
            "LLM completion received",
            provider=self.name,
            model=model,
            tokens=tokens,
            latency_ms=round((time.time() - started) * 1000, 2),
        )

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> str:
        """Generate a complete response for a list of chat messages."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if provider is available."""

    async def close(self) -> None:
        """Release network resources held by the provider."""
        if self._client is not None:
            await self._client.close()
            self._client = None


class OpenAIProvider(LLMProvider):
    """OpenAI (or OpenAI-compatible) chat completions provider."""

    name = "openai"

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                organization=self.settings.openai_org_id,
                base_url=self.settings.openai_base_url,
            )
        return self._client

    async def generate(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> str:
        model = self.resolve_model(model)
        started = time.time()

        try:
            completion = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except Exception as e:
            logger.error("OpenAI completion failed", error=str(e), model=model)
            raise

        self._log_completion(model, started, completion.usage.total_tokens if completion.usage else None)
        return completion.choices[0].message.content or ""

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
        except Exception:
            return False
        return True


class AnthropicProvider(LLMProvider):
    """Anthropic messages API provider."""

    name = "anthropic"
    default_model = "claude-3-5-haiku-20241022"

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._client

    async def generate(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> str:
        model = self.resolve_model(model)
        started = time.time()

        # The messages API takes the system prompt as a separate argument
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        conversation = [m for m in messages if m["role"] != "system"]
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        try:
            reply = await self.client.messages.create(
                model=model,
                messages=conversation,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs,
            )
        except Exception as e:
            logger.error("Anthropic completion failed", error=str(e), model=model)
            raise

        self._log_completion(model, started, reply.usage.input_tokens + reply.usage.output_tokens)
        return "".join(block.text for block in reply.content if block.type == "text")

    async def health_check(self) -> bool:
        try:
            await self.client.models.list(limit=1)
        except Exception:
            return False
        return True


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider."""

    name = "ollama"
    default_model = "llama3.2"

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.ollama_url or "http://localhost:11434",
                timeout=self.settings.llm_timeout_seconds,
            )
        return self._client

    async def generate(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> str:
        model = self.resolve_model(model)
        started = time.time()

        try:
            response = await self.client.post(
                "/api/chat",
                json={
                    "model": model,
                    "messages": messages,
                    "stream": False,
                    "options": {"num_predict": max_tokens, "temperature": temperature},
                },
            )
            response.raise_for_status()
            payload = response.json()
        except Exception as e:
            logger.error("Ollama completion failed", error=str(e), model=model)
            raise

        self._log_completion(model, started, payload.get("eval_count"))
        return payload["message"]["content"]

    async def health_check(self) -> bool:
        try:
            response = await self.client.get("/api/tags")
        except httpx.HTTPError:
            return False
        return response.is_success

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
