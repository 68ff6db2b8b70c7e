"""Prompt templates for the language-analysis collaborator."""

import re
import threading
from enum import Enum
from typing import Any

import structlog

from task_search.exceptions import (
    MissingVariablesError,
    PromptTemplateError,
    UnknownTemplateTypeError,
)

logger = structlog.get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{\{[^}]+\}\}")


class PromptType(str, Enum):
    """Analysis tasks that have a prompt template."""

    SEMANTIC_SEARCH = "semantic-search"
    DATE_ANALYSIS = "date-analysis"
    RESULT_RANKING = "result-ranking"


SEMANTIC_SEARCH_TEMPLATE = """You are an intelligent task search assistant. A user is looking for a task in their task database.

Search query: "{{query}}"

Identify the key concepts behind this query: the kind of work involved, the components or areas it touches, and synonyms a task title might use instead of the user's words.

Respond with 5-10 short keywords or phrases separated by commas. Do not add explanations."""

DATE_ANALYSIS_TEMPLATE = """You are a date interpretation specialist. Convert the user's date expression into a single calendar date.

Date expression: "{{dateInput}}"
Current date and time: {{currentDate}}

Rules:
- Resolve relative expressions ("yesterday", "last week", "3 days ago") against the current date.
- For ranges ("last week", "this month") choose the single date that best represents the range.
- If the expression cannot be interpreted, use a confidence of 0.

Respond with JSON only, in this exact shape:
{"targetDate": "<ISO 8601 date-time>", "confidence": <number between 0 and 1>, "interpretation": "<one short sentence>"}"""

RESULT_RANKING_TEMPLATE = """You are a result ranking specialist for a task search tool. Score how relevant each task is to the user's query.

User query: "{{query}}"
Target date: {{targetDate}}
Date importance (0 = ignore dates, 1 = dates dominate): {{dateWeight}}

Candidate tasks (JSON):
{{results}}

Instructions:
1. Consider semantic meaning, not only keyword overlap.
2. Score each relevant task from 0.0 to 1.0 (1.0 = perfect match).
3. Only include tasks with a score above 0.3.
4. Give a brief reason for each selection.

Respond with a JSON array only:
[{"pageId": "<id>", "relevanceScore": <number>, "reasoning": "<short reason>"}]"""

_REGISTERED_TEMPLATES: dict[PromptType, str] = {
    PromptType.SEMANTIC_SEARCH: SEMANTIC_SEARCH_TEMPLATE,
    PromptType.DATE_ANALYSIS: DATE_ANALYSIS_TEMPLATE,
    PromptType.RESULT_RANKING: RESULT_RANKING_TEMPLATE,
}


class PromptTemplateManager:
    """Loads, caches, formats and validates prompt templates.

    Cached entries are read without locking; populating and clearing the
    cache are serialized.
    """

    def __init__(self, templates: dict[PromptType, str] | None = None):
        self._templates = dict(_REGISTERED_TEMPLATES if templates is None else templates)
        self._cache: dict[PromptType, str] = {}
        self._lock = threading.Lock()
        self.cache_hits = 0

    def get_template(self, prompt_type: PromptType | str) -> str:
        """Get the template body for a prompt type."""
        try:
            key = PromptType(prompt_type)
        except ValueError:
            raise UnknownTemplateTypeError(str(prompt_type)) from None

        cached = self._cache.get(key)
        if cached is not None:
            self.cache_hits += 1
            return cached

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.cache_hits += 1
                return cached

            content = self._templates.get(key)
            if content is None:
                raise UnknownTemplateTypeError(key.value)

            self._cache[key] = content
            logger.debug("Prompt template cached", prompt_type=key.value)
            return content

    def format(self, template: str, variables: dict[str, Any]) -> str:
        """Substitute ``{{name}}`` placeholders with variable values."""
        if not self.validate(template):
            raise PromptTemplateError("Invalid prompt template provided")

        formatted = template
        for key, value in variables.items():
            formatted = formatted.replace(f"{{{{{key}}}}}", str(value))

        missing = _PLACEHOLDER.findall(formatted)
        if missing:
            raise MissingVariablesError(missing)

        return formatted

    def render(self, prompt_type: PromptType | str, variables: dict[str, Any]) -> str:
        """Get and format a template in one step."""
        return self.format(self.get_template(prompt_type), variables)

    @staticmethod
    def validate(template: str) -> bool:
        """Check a template is non-empty with balanced placeholder braces."""
        if not isinstance(template, str) or not template.strip():
            return False
        return template.count("{{") == template.count("}}")

    def preload(self) -> None:
        """Populate the cache for every prompt type."""
        for prompt_type in PromptType:
            self.get_template(prompt_type)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
