"""Data models for task search."""

from task_search.models.query import (
    DateAnalysis,
    EnrichedQuery,
    RankingCriteria,
    SearchQuery,
)
from task_search.models.results import RankedResult, SearchMetadata, TaskSearchResult
from task_search.models.task import RankableItem, TaskPage, property_text

__all__ = [
    "DateAnalysis",
    "EnrichedQuery",
    "RankingCriteria",
    "SearchQuery",
    "RankedResult",
    "SearchMetadata",
    "TaskSearchResult",
    "RankableItem",
    "TaskPage",
    "property_text",
]
