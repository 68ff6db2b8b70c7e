"""Keyword extraction for query enrichment."""

import re

import structlog

from task_search.llm.analyzer import LanguageAnalyzer

logger = structlog.get_logger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
        "do", "does", "did", "will", "would", "could", "should", "this", "that",
        "these", "those", "i", "you", "he", "she", "it", "we", "they",
    }
)

# Trigger substrings and the terms they add to the keyword set
DOMAIN_TERMS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("bug", "fix"), ("bug", "fix", "issue")),
    (("feature", "implement"), ("feature", "implementation", "development")),
    (("test", "testing"), ("test", "testing", "qa")),
)

_ALPHA = re.compile(r"^[a-zA-Z]+$")
_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_basic_keywords(description: str) -> list[str]:
    """Stop-word filtered tokens of the description with punctuation removed."""
    words = _PUNCTUATION.sub(" ", description.lower()).split()
    return list(dict.fromkeys(w for w in words if len(w) > 2 and w not in STOP_WORDS))


def extract_semantic_keywords(description: str) -> list[str]:
    """Alphabetic content words of the description plus domain terms."""
    lowered = description.lower()
    keywords = [
        w for w in lowered.split() if len(w) > 3 and w not in STOP_WORDS and _ALPHA.match(w)
    ]
    for triggers, terms in DOMAIN_TERMS:
        if any(trigger in lowered for trigger in triggers):
            keywords.extend(terms)
    return list(dict.fromkeys(keywords))


class KeywordExtractor:
    """Derive search keywords from a task description."""

    def __init__(self, analyzer: LanguageAnalyzer | None = None):
        self.analyzer = analyzer

    async def extract_keywords(self, description: str | None) -> list[str]:
        if not description or not description.strip():
            return []

        if self.analyzer is not None:
            try:
                concepts = await self.analyzer.extract_semantics(description)
            except Exception as e:
                logger.warning("Semantic extraction failed, using basic keywords", error=str(e))
            else:
                logger.debug("Semantic concepts extracted", concepts=concepts)
                return extract_semantic_keywords(description)

        return extract_basic_keywords(description)
