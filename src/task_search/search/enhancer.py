"""Query enrichment with keywords and a parsed target date."""

from datetime import datetime

import structlog

from task_search.config import Settings, get_settings
from task_search.models.query import EnrichedQuery, SearchQuery
from task_search.search.dates import DateInterpreter
from task_search.search.keywords import KeywordExtractor

logger = structlog.get_logger(__name__)


class QueryEnhancer:
    """Build an enriched copy of a search query."""

    def __init__(
        self,
        date_interpreter: DateInterpreter | None = None,
        keyword_extractor: KeywordExtractor | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.date_interpreter = date_interpreter or DateInterpreter()
        self.keyword_extractor = keyword_extractor or KeywordExtractor()

    async def enhance(
        self,
        query: SearchQuery,
        reference_time: datetime | None = None,
    ) -> EnrichedQuery:
        """Return a new query with keywords appended, a target date and defaults filled in."""
        description = query.description
        keywords = await self.keyword_extractor.extract_keywords(query.description)
        if keywords:
            description = f"{query.description} [Keywords: {' '.join(keywords)}]"

        target_date = None
        if query.relative_date:
            target_date = await self.date_interpreter.parse_date(
                query.relative_date, reference_time=reference_time
            )

        enriched = EnrichedQuery(
            **query.model_dump(
                exclude={"description", "max_results", "include_content", "parsed_target_date"}
            ),
            description=description,
            max_results=(
                query.max_results
                if query.max_results is not None
                else self.settings.default_max_results
            ),
            include_content=query.include_content if query.include_content is not None else True,
            parsed_target_date=target_date,
        )

        logger.debug(
            "Query enhanced",
            keywords=len(keywords),
            has_target_date=target_date is not None,
        )
        return enriched
