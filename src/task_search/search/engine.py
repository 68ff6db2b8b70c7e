"""Task search pipeline: enrich, retrieve, score, rank, filter."""

import time
from datetime import datetime

import structlog

from task_search.config import Settings, get_settings
from task_search.exceptions import InvalidArgumentError, SearchError
from task_search.llm.analyzer import LanguageAnalyzer, count_llm_calls
from task_search.models.query import EnrichedQuery, SearchQuery
from task_search.models.results import RankedResult, SearchMetadata, TaskSearchResult
from task_search.models.task import TaskPage
from task_search.prompts.templates import PromptTemplateManager
from task_search.search.dates import DateInterpreter
from task_search.search.enhancer import QueryEnhancer
from task_search.search.keywords import KeywordExtractor
from task_search.search.ranking import RankingEngine
from task_search.search.scoring import (
    LexicalRelevanceScorer,
    LLMRelevanceScorer,
    date_proximity_score,
)
from task_search.store.base import TaskStore

logger = structlog.get_logger(__name__)


class TaskSearchEngine:
    """Runs a task search against a task store.

    Steps:
    1. Enhance the query with keywords and a parsed target date
    2. Fetch candidate pages from the store
    3. Score relevance (LLM or lexical) and date proximity
    4. Combine, order and permission-filter the candidates
    5. Truncate to ``max_results``
    """

    def __init__(
        self,
        store: TaskStore,
        analyzer: LanguageAnalyzer | None = None,
        templates: PromptTemplateManager | None = None,
        settings: Settings | None = None,
        ranking: RankingEngine | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.analyzer = analyzer
        self.templates = templates or (analyzer.templates if analyzer else None)
        self.ranking = ranking or RankingEngine()
        self.enhancer = QueryEnhancer(
            date_interpreter=DateInterpreter(analyzer),
            keyword_extractor=KeywordExtractor(analyzer),
            settings=self.settings,
        )
        self.lexical_scorer = LexicalRelevanceScorer()
        self.llm_scorer = (
            LLMRelevanceScorer(analyzer, self.lexical_scorer) if analyzer is not None else None
        )

    async def search(
        self,
        query: SearchQuery,
        reference_time: datetime | None = None,
    ) -> TaskSearchResult:
        """Search the query's task database and return ranked, permitted results."""
        if not query.user_id or not query.user_id.strip():
            raise InvalidArgumentError("user_id is required")
        if not query.database_id or not query.database_id.strip():
            raise InvalidArgumentError("database_id is required")

        start_time = time.time()
        metadata = SearchMetadata()
        cache_hits_before = self.templates.cache_hits if self.templates else 0

        with count_llm_calls() as llm_calls:
            enriched = await self.enhancer.enhance(query, reference_time=reference_time)
            metadata.processing_steps.append("query_enhanced")

            try:
                metadata.store_calls += 1
                pages = await self.store.get_database_pages(enriched.database_id)
            except Exception as e:
                logger.error(
                    "Task store retrieval failed",
                    database_id=enriched.database_id,
                    error=str(e),
                )
                raise SearchError(f"Failed to retrieve tasks: {e}") from e
            metadata.processing_steps.append("pages_retrieved")

            results: list[RankedResult] = []
            if pages:
                results = await self._rank(enriched, pages, metadata)

        metadata.llm_calls_by_kind = dict(llm_calls)
        metadata.llm_calls = sum(llm_calls.values())
        if self.templates:
            metadata.template_cache_hits = self.templates.cache_hits - cache_hits_before

        search_time_ms = (time.time() - start_time) * 1000
        logger.info(
            "Task search completed",
            database_id=enriched.database_id,
            candidates=len(pages),
            returned=len(results),
            llm_calls=metadata.llm_calls,
            search_time_ms=round(search_time_ms, 2),
        )

        return TaskSearchResult(
            results=results,
            total_count=len(pages),
            search_time_ms=search_time_ms,
            query=enriched,
            metadata=metadata,
        )

    async def _rank(
        self,
        query: EnrichedQuery,
        pages: list[TaskPage],
        metadata: SearchMetadata,
    ) -> list[RankedResult]:
        target_date = query.parsed_target_date
        criteria = self.ranking.create_ranking_criteria(
            has_date=target_date is not None,
            max_results=query.max_results or self.settings.default_max_results,
        )

        if self.settings.llm_ranking_enabled and self.llm_scorer is not None:
            scored = await self.llm_scorer.score(
                pages,
                query.description,
                target_date=target_date,
                date_weight=criteria.date_weight,
            )
            metadata.processing_steps.append("relevance_scored_llm")
        else:
            scored = await self.lexical_scorer.score(pages, query.description)
            metadata.processing_steps.append("relevance_scored_lexical")

        if target_date is not None:
            scored = [
                RankedResult(
                    page=r.page,
                    relevance_score=r.relevance_score,
                    date_proximity_score=date_proximity_score(r.page.created_time, target_date),
                    reasoning=r.reasoning,
                )
                for r in scored
            ]
            metadata.processing_steps.append("date_proximity_scored")

        combined = self.ranking.combine_scores(scored, criteria)
        ordered = self.ranking.order_by_score(combined)
        metadata.processing_steps.append("results_ranked")

        permitted = await self.ranking.check_permissions(ordered, query.user_id)
        metadata.processing_steps.append("permissions_checked")

        return permitted[: criteria.max_results]
