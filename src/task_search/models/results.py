"""Ranking and search result models."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from task_search.models.query import EnrichedQuery

ItemT = TypeVar("ItemT")


@dataclass(frozen=True)
class RankedResult(Generic[ItemT]):
    """A candidate item with its relevance, date proximity and combined scores."""

    page: ItemT
    relevance_score: float = 0.0
    date_proximity_score: float = 0.0
    combined_score: float = 0.0
    reasoning: str | None = None


@dataclass
class SearchMetadata:
    """Per-search observability data."""

    llm_calls: int = 0
    llm_calls_by_kind: dict[str, int] = field(default_factory=dict)
    store_calls: int = 0
    template_cache_hits: int = 0
    processing_steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "llm_calls": self.llm_calls,
            "llm_calls_by_kind": dict(self.llm_calls_by_kind),
            "store_calls": self.store_calls,
            "template_cache_hits": self.template_cache_hits,
            "processing_steps": list(self.processing_steps),
        }


@dataclass
class TaskSearchResult:
    """Result of a full task search."""

    results: list[RankedResult]
    total_count: int
    search_time_ms: float
    query: EnrichedQuery
    metadata: SearchMetadata
