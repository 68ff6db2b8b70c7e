"""LLM gateway with provider selection, fallback and usage tracking."""

import time
from typing import Any

import structlog

from task_search.config import Settings, get_settings
from task_search.exceptions import LLMUnavailableError
from task_search.llm.providers import (
    AnthropicProvider,
    LLMProvider,
    OllamaProvider,
    OpenAIProvider,
)

logger = structlog.get_logger(__name__)

PROVIDER_CLASSES: dict[str, type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "ollama": OllamaProvider,
}


class UsageTracker:
    """Track LLM requests, estimated tokens and errors per provider/model."""

    def __init__(self):
        self._usage: dict[str, dict[str, Any]] = {}

    def _entry(self, provider: str, model: str) -> dict[str, Any]:
        key = f"{provider}:{model}"
        if key not in self._usage:
            self._usage[key] = {
                "provider": provider,
                "model": model,
                "requests": 0,
                "estimated_tokens": 0,
                "total_latency_ms": 0.0,
                "errors": 0,
            }
        return self._usage[key]

    def record(self, provider: str, model: str, tokens: int, latency_ms: float) -> None:
        entry = self._entry(provider, model)
        entry["requests"] += 1
        entry["estimated_tokens"] += tokens
        entry["total_latency_ms"] += latency_ms

    def record_error(self, provider: str, model: str) -> None:
        self._entry(provider, model)["errors"] += 1

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_requests": sum(u["requests"] for u in self._usage.values()),
            "total_estimated_tokens": sum(u["estimated_tokens"] for u in self._usage.values()),
            "total_errors": sum(u["errors"] for u in self._usage.values()),
            "by_model": {key: dict(value) for key, value in self._usage.items()},
        }


class LLMGateway:
    """Unified entry point to the configured LLM providers."""

    FALLBACK_ORDER = ("openai", "anthropic", "ollama")

    def __init__(
        self,
        settings: Settings | None = None,
        providers: dict[str, LLMProvider] | None = None,
    ):
        self.settings = settings or get_settings()
        self._usage = UsageTracker()
        if providers is not None:
            self._providers = dict(providers)
        else:
            self._providers = {}
            self._init_providers()

    def _init_providers(self) -> None:
        """Create a provider for every backend that has credentials configured."""
        for name in self.settings.available_providers:
            self._providers[name] = PROVIDER_CLASSES[name](self.settings)
            logger.info("LLM provider enabled", provider=name)

        if not self._providers:
            logger.warning("No LLM providers configured, rule-based analysis only")

    @property
    def available_providers(self) -> list[str]:
        return list(self._providers.keys())

    @property
    def is_configured(self) -> bool:
        return bool(self._providers)

    def _provider_order(self, preferred: str | None) -> list[str]:
        order = []
        if preferred in self._providers:
            order.append(preferred)
        for name in (*self.FALLBACK_ORDER, *self._providers):
            if name in self._providers and name not in order:
                order.append(name)
        return order

    async def generate(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        provider: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.3,
        fallback: bool = True,
    ) -> str:
        """Generate a response, trying other providers if the preferred one fails."""
        order = self._provider_order(provider or self.settings.default_llm_provider)
        if not order:
            raise LLMUnavailableError("No LLM providers available")
        if not fallback:
            order = order[:1]

        model = model or self.settings.default_llm_model
        errors = []

        for name in order:
            selected = self._providers[name]
            start_time = time.time()
            try:
                result = await selected.generate(
                    messages=messages,
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except Exception as e:
                logger.warning("Provider failed", provider=name, error=str(e))
                errors.append(f"{name}: {e}")
                self._usage.record_error(name, model)
                continue

            # Rough estimate: 4 characters per token
            tokens = (sum(len(m.get("content", "")) for m in messages) + len(result)) // 4
            self._usage.record(name, model, tokens, (time.time() - start_time) * 1000)
            return result

        raise LLMUnavailableError(f"All providers failed: {'; '.join(errors)}")

    def get_usage_stats(self) -> dict[str, Any]:
        return self._usage.get_stats()

    async def health_check(self) -> dict[str, bool]:
        results = {}
        for name, provider in self._providers.items():
            try:
                results[name] = await provider.health_check()
            except Exception:
                results[name] = False
        return results

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()

