"""Interpretation of free-text date expressions."""

import re
from datetime import datetime, timedelta, timezone

import structlog
from dateutil import parser as date_parser

from task_search.llm.analyzer import LanguageAnalyzer
from task_search.models.query import DateAnalysis

logger = structlog.get_logger(__name__)

_DAYS_AGO = re.compile(r"(\d+)\s+days?\s+ago")
_WEEKS_AGO = re.compile(r"(\d+)\s+weeks?\s+ago")


def _previous_month(now: datetime) -> datetime:
    """Step the month field back by one, keeping the day-of-month.

    A day that does not exist in the previous month rolls forward into the
    following one, so March 31 becomes March 3 in a non-leap year.
    """
    if now.month == 1:
        first = now.replace(year=now.year - 1, month=12, day=1)
    else:
        first = now.replace(month=now.month - 1, day=1)
    return first + timedelta(days=now.day - 1)


def _days_before(now: datetime, days: int) -> datetime | None:
    # Offsets past the representable range have no date
    try:
        return now - timedelta(days=days)
    except (ValueError, OverflowError):
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_basic_date(text: str, now: datetime) -> datetime | None:
    """Rule-based parsing of relative keywords, "N days/weeks ago" and calendar dates."""
    normalized = text.strip().lower()
    if not normalized:
        return None

    if normalized == "today":
        return now
    if normalized == "yesterday":
        return _days_before(now, 1)
    if normalized == "tomorrow":
        return _days_before(now, -1)
    if normalized == "last week":
        return _days_before(now, 7)
    if normalized == "this week":
        return now
    if normalized == "last month":
        try:
            return _previous_month(now)
        except (ValueError, OverflowError):
            return None
    if normalized == "this month":
        return now

    match = _DAYS_AGO.search(normalized)
    if match:
        return _days_before(now, int(match.group(1)))

    match = _WEEKS_AGO.search(normalized)
    if match:
        return _days_before(now, int(match.group(1)) * 7)

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
    try:
        parsed = date_parser.parse(text.strip(), default=midnight)
    except (ValueError, OverflowError):
        return None
    return _as_utc(parsed)


class DateInterpreter:
    """Parse date expressions, asking the analyzer first when one is configured."""

    def __init__(self, analyzer: LanguageAnalyzer | None = None):
        self.analyzer = analyzer

    async def parse_date(
        self,
        text: str | None,
        reference_time: datetime | None = None,
    ) -> datetime | None:
        """Resolve ``text`` to a datetime, or ``None`` when it cannot be interpreted."""
        if not text or not text.strip():
            return None

        now = reference_time or datetime.now(timezone.utc)

        analysis = await self._analyze_with_llm(text, now)
        if analysis is not None and isinstance(analysis.target_date, datetime):
            logger.debug(
                "Date resolved by analyzer",
                date_input=text,
                target_date=analysis.target_date.isoformat(),
                confidence=analysis.confidence,
            )
            return _as_utc(analysis.target_date)

        parsed = parse_basic_date(text, now)
        if parsed is None:
            logger.info("Could not interpret date expression", date_input=text)
        return parsed

    async def _analyze_with_llm(self, text: str, now: datetime) -> DateAnalysis | None:
        if self.analyzer is None:
            return None
        try:
            return await self.analyzer.analyze_date(text, reference_time=now)
        except Exception as e:
            logger.warning("LLM date analysis failed, using rule-based parsing", error=str(e))
            return None
