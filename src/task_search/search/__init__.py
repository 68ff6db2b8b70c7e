"""Query enrichment, scoring and ranking."""

from task_search.search.dates import DateInterpreter, parse_basic_date
from task_search.search.engine import TaskSearchEngine
from task_search.search.enhancer import QueryEnhancer
from task_search.search.keywords import KeywordExtractor
from task_search.search.ranking import RankingEngine
from task_search.search.scoring import (
    LexicalRelevanceScorer,
    LLMRelevanceScorer,
    date_proximity_score,
)

__all__ = [
    "DateInterpreter",
    "parse_basic_date",
    "TaskSearchEngine",
    "QueryEnhancer",
    "KeywordExtractor",
    "RankingEngine",
    "LexicalRelevanceScorer",
    "LLMRelevanceScorer",
    "date_proximity_score",
]
