"""Score combination, ordering and permission filtering of ranked results."""

import math
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from functools import cmp_to_key
from typing import Any

import structlog

from task_search.exceptions import InvalidArgumentError
from task_search.models.query import RankingCriteria
from task_search.models.results import RankedResult

logger = structlog.get_logger(__name__)

# Scores closer than this are treated as equal when ordering
SCORE_EPSILON = 0.0001

DATE_SPECIFIED_WEIGHTS = (0.3, 0.7)
DATE_ABSENT_WEIGHTS = (1.0, 0.0)


def clamp_score(value: Any) -> float:
    """Clamp into [0, 1]; missing, NaN and non-numeric values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(1.0, number))


def _sign(delta: float) -> int:
    return (delta > 0) - (delta < 0)


def _compare(a: RankedResult, b: RankedResult) -> int:
    combined = b.combined_score - a.combined_score
    if abs(combined) >= SCORE_EPSILON:
        return _sign(combined)

    relevance = b.relevance_score - a.relevance_score
    if abs(relevance) >= SCORE_EPSILON:
        return _sign(relevance)

    return _sign(b.date_proximity_score - a.date_proximity_score)


class RankingEngine:
    """Combines scores, orders results and filters out items the user cannot see."""

    @staticmethod
    def create_ranking_criteria(has_date: bool, max_results: int = 10) -> RankingCriteria:
        """Date-weighted criteria when a target date is known, relevance-only otherwise."""
        semantic_weight, date_weight = DATE_SPECIFIED_WEIGHTS if has_date else DATE_ABSENT_WEIGHTS
        return RankingCriteria(
            semantic_weight=semantic_weight,
            date_weight=date_weight,
            max_results=max_results,
        )

    def combine_scores(
        self,
        results: Sequence[RankedResult] | None,
        criteria: RankingCriteria,
    ) -> list[RankedResult]:
        if not results:
            return []

        combined = []
        for result in results:
            relevance = clamp_score(result.relevance_score)
            proximity = clamp_score(result.date_proximity_score)
            score = relevance * criteria.semantic_weight + proximity * criteria.date_weight
            combined.append(
                replace(
                    result,
                    relevance_score=relevance,
                    date_proximity_score=proximity,
                    combined_score=clamp_score(score),
                )
            )

        logger.debug(
            "Scores combined",
            count=len(combined),
            semantic_weight=criteria.semantic_weight,
            date_weight=criteria.date_weight,
        )
        return combined

    def order_by_score(self, results: Sequence[RankedResult] | None) -> list[RankedResult]:
        """Stable descending sort by combined score with relevance and date tie-breaks."""
        if not results:
            return []
        return sorted(results, key=cmp_to_key(_compare))

    async def check_permissions(
        self,
        results: Sequence[RankedResult] | None,
        user_id: str,
    ) -> list[RankedResult]:
        """Keep results whose page has an id, is not archived and has a creation time."""
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidArgumentError("user_id is required for permission checks")
        if not results:
            return []

        permitted = []
        for result in results:
            try:
                if self._is_accessible(result.page):
                    permitted.append(result)
            except Exception as e:
                logger.warning(
                    "Permission check failed for result, excluding it",
                    user_id=user_id,
                    error=str(e),
                )

        if len(permitted) < len(results):
            logger.debug(
                "Results filtered by permissions",
                user_id=user_id,
                kept=len(permitted),
                dropped=len(results) - len(permitted),
            )
        return permitted

    @staticmethod
    def _is_accessible(page: Any) -> bool:
        if page is None:
            return False
        page_id = page.id
        if not isinstance(page_id, str) or not page_id:
            return False
        if page.archived:
            return False
        return isinstance(page.created_time, datetime)
