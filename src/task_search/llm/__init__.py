"""LLM gateway, providers and language analysis."""

from task_search.llm.analyzer import LanguageAnalyzer, count_llm_calls
from task_search.llm.gateway import LLMGateway, UsageTracker
from task_search.llm.providers import (
    AnthropicProvider,
    LLMProvider,
    OllamaProvider,
    OpenAIProvider,
)

__all__ = [
    "LanguageAnalyzer",
    "count_llm_calls",
    "LLMGateway",
    "UsageTracker",
    "LLMProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "OllamaProvider",
]
