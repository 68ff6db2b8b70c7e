"""Language analysis on top of the LLM gateway.

The analyzer turns prompt templates into LLM calls for the three analysis
tasks the search core needs: date interpretation, semantic concept extraction
and relevance scoring. Every call is bounded by a timeout and every failure
surfaces as ``LanguageAnalysisError`` so callers can fall back to rule-based
processing.
"""

import asyncio
import json
import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

import structlog
from dateutil import parser as date_parser

from task_search.config import Settings, get_settings
from task_search.exceptions import (
    LanguageAnalysisError,
    PromptTemplateError,
    UnknownTemplateTypeError,
)
from task_search.llm.gateway import LLMGateway
from task_search.models.query import DateAnalysis
from task_search.models.task import TaskPage
from task_search.prompts.templates import PromptTemplateManager, PromptType

logger = structlog.get_logger(__name__)

_call_counts: ContextVar[dict[str, int] | None] = ContextVar("llm_call_counts", default=None)


@contextmanager
def count_llm_calls() -> Iterator[dict[str, int]]:
    """Collect the analyzer calls made in the current context, keyed by prompt type."""
    counts: dict[str, int] = {}
    token = _call_counts.set(counts)
    try:
        yield counts
    finally:
        _call_counts.reset(token)


def _record_call(kind: str) -> None:
    counts = _call_counts.get()
    if counts is not None:
        counts[kind] = counts.get(kind, 0) + 1


def _extract_json(response: str) -> Any:
    """Parse a JSON payload from a model response, tolerating code fences."""
    text = response.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = re.search(r"\[.*\]|\{.*\}", text, re.DOTALL)
    if match is None:
        raise LanguageAnalysisError("No JSON found in model response")
    try:
        return json.loads(match.group())
    except json.JSONDecodeError as e:
        raise LanguageAnalysisError(f"Malformed JSON in model response: {e}") from e


def _clamp(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:
        return 0.0
    return max(0.0, min(1.0, number))


class LanguageAnalyzer:
    """LLM-backed date interpretation, concept extraction and relevance scoring."""

    def __init__(
        self,
        gateway: LLMGateway,
        templates: PromptTemplateManager | None = None,
        settings: Settings | None = None,
        timeout: float | None = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.templates = templates or PromptTemplateManager()
        self.timeout = timeout if timeout is not None else self.settings.llm_timeout_seconds

    def _render(self, kind: PromptType, variables: dict[str, Any]) -> str:
        # Query or page text containing {{...}} leaves unresolved placeholders
        try:
            return self.templates.render(kind, variables)
        except (PromptTemplateError, UnknownTemplateTypeError) as e:
            raise LanguageAnalysisError(f"{kind.value} prompt could not be rendered: {e}") from e

    async def _complete(self, kind: PromptType, prompt: str, temperature: float) -> str:
        _record_call(kind.value)
        try:
            return await asyncio.wait_for(
                self.gateway.generate(
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self.settings.llm_max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise LanguageAnalysisError(
                f"{kind.value} call timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise LanguageAnalysisError(f"{kind.value} call failed: {e}") from e

    async def analyze_date(
        self,
        date_input: str,
        reference_time: datetime | None = None,
    ) -> DateAnalysis:
        """Interpret a date expression relative to ``reference_time``."""
        now = reference_time or datetime.now(timezone.utc)
        prompt = self._render(
            PromptType.DATE_ANALYSIS,
            {"dateInput": date_input, "currentDate": now.isoformat()},
        )
        response = await self._complete(
            PromptType.DATE_ANALYSIS, prompt, self.settings.date_analysis_temperature
        )

        data = _extract_json(response)
        if not isinstance(data, dict) or not data.get("targetDate"):
            raise LanguageAnalysisError("Date analysis response has no targetDate")

        try:
            target = date_parser.isoparse(str(data["targetDate"]))
        except (ValueError, OverflowError) as e:
            raise LanguageAnalysisError(f"Unparseable targetDate: {data['targetDate']}") from e
        if target.tzinfo is None:
            target = target.replace(tzinfo=timezone.utc)

        return DateAnalysis(
            target_date=target,
            confidence=_clamp(data.get("confidence", 0.0)),
            interpretation=str(data.get("interpretation", "")),
        )

    async def extract_semantics(self, description: str) -> list[str]:
        """List the key concepts the model associates with a description."""
        prompt = self._render(PromptType.SEMANTIC_SEARCH, {"query": description})
        response = await self._complete(
            PromptType.SEMANTIC_SEARCH, prompt, self.settings.semantic_temperature
        )
        concepts = [part.strip().strip("-*•").strip() for part in re.split(r"[,\n]", response)]
        return [c.lower() for c in concepts if c]

    async def score_relevance(
        self,
        query: str,
        pages: Sequence[TaskPage],
        target_date: datetime | None = None,
        date_weight: float = 0.0,
    ) -> dict[str, tuple[float, str]]:
        """Ask the model which pages match the query.

        Returns a mapping of page id to ``(relevance, reasoning)`` for the
        pages the model selected. Ids the model invents are ignored.
        """
        if not pages:
            return {}

        listing = [
            {
                "pageId": page.id,
                "title": page.title,
                "content": page.searchable_text()[:500],
                "createdTime": page.created_time.isoformat() if page.created_time else None,
            }
            for page in pages
        ]
        prompt = self._render(
            PromptType.RESULT_RANKING,
            {
                "query": query,
                "targetDate": target_date.isoformat() if target_date else "none",
                "dateWeight": date_weight,
                "results": json.dumps(listing, ensure_ascii=False, indent=2),
            },
        )
        response = await self._complete(
            PromptType.RESULT_RANKING, prompt, self.settings.ranking_temperature
        )

        data = _extract_json(response)
        if isinstance(data, dict):
            data = data.get("results", [])
        if not isinstance(data, list):
            raise LanguageAnalysisError("Ranking response is not a JSON array")

        known_ids = {page.id for page in pages}
        scores: dict[str, tuple[float, str]] = {}
        for entry in data:
            if not isinstance(entry, dict):
                continue
            page_id = entry.get("pageId")
            if page_id not in known_ids:
                continue
            scores[page_id] = (
                _clamp(entry.get("relevanceScore", 0.0)),
                str(entry.get("reasoning", "")),
            )

        logger.debug("LLM relevance scoring completed", selected=len(scores), candidates=len(pages))
        return scores
