"""Relevance and date-proximity scoring of candidate pages."""

import math
import re
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from task_search.exceptions import LanguageAnalysisError
from task_search.llm.analyzer import LanguageAnalyzer
from task_search.models.results import RankedResult
from task_search.models.task import TaskPage
from task_search.search.keywords import STOP_WORDS

logger = structlog.get_logger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]")
_ANNOTATION_LABEL = re.compile(r"\[keywords:", re.IGNORECASE)
_ALPHA = re.compile(r"^[a-zA-Z]+$")

SECONDS_PER_DAY = 60 * 60 * 24


def query_terms(query: str) -> list[str]:
    """Distinct lower-cased alphabetic content words of a query, in first-seen order.

    The label of an appended ``[Keywords: ...]`` annotation is not a term.
    """
    words = _PUNCTUATION.sub(" ", _ANNOTATION_LABEL.sub(" ", query).lower()).split()
    terms = [w for w in words if len(w) > 2 and w not in STOP_WORDS and _ALPHA.match(w)]
    return list(dict.fromkeys(terms))


def date_proximity_score(created_time: datetime | None, target_date: datetime | None) -> float:
    """Exponential decay over the distance in days: same day 1.0, a week ~0.5, a month ~0.05."""
    if created_time is None or target_date is None:
        return 0.0
    # Naive timestamps are UTC
    if created_time.tzinfo is None:
        created_time = created_time.replace(tzinfo=timezone.utc)
    if target_date.tzinfo is None:
        target_date = target_date.replace(tzinfo=timezone.utc)
    days = abs((created_time - target_date).total_seconds()) / SECONDS_PER_DAY
    return max(0.0, min(1.0, math.exp(-days / 10)))


class LexicalRelevanceScorer:
    """Term-frequency relevance with title matches weighted up."""

    def score_page(self, page: TaskPage, terms: Sequence[str]) -> float:
        if not terms:
            return 0.0

        text = page.searchable_text().lower()
        title = (page.title or "").lower()

        score = 0
        for term in terms:
            score += title.count(term) * 3
            score += text.count(term)
            if term in title:
                score += 2

        normalized = score / (len(terms) * max(1.0, math.log(len(text) + 1)))
        return min(1.0, normalized)

    async def score(self, pages: Sequence[TaskPage], query: str) -> list[RankedResult[TaskPage]]:
        terms = query_terms(query)
        return [RankedResult(page=page, relevance_score=self.score_page(page, terms)) for page in pages]


class LLMRelevanceScorer:
    """Relevance judged by the language analyzer, falling back to lexical scoring."""

    def __init__(
        self,
        analyzer: LanguageAnalyzer,
        fallback: LexicalRelevanceScorer | None = None,
    ):
        self.analyzer = analyzer
        self.fallback = fallback or LexicalRelevanceScorer()

    async def score(
        self,
        pages: Sequence[TaskPage],
        query: str,
        target_date: datetime | None = None,
        date_weight: float = 0.0,
    ) -> list[RankedResult[TaskPage]]:
        try:
            scores = await self.analyzer.score_relevance(
                query, pages, target_date=target_date, date_weight=date_weight
            )
        except LanguageAnalysisError as e:
            logger.warning("LLM relevance scoring failed, using lexical scoring", error=str(e))
            return await self.fallback.score(pages, query)

        results = []
        for page in pages:
            relevance, reasoning = scores.get(page.id, (0.0, None))
            results.append(RankedResult(page=page, relevance_score=relevance, reasoning=reasoning))
        return results
