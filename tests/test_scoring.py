"""Tests for relevance and date-proximity scoring."""

import math
from datetime import timedelta

import pytest

from task_search.llm import LanguageAnalyzer
from task_search.search.scoring import (
    LexicalRelevanceScorer,
    LLMRelevanceScorer,
    date_proximity_score,
    query_terms,
)

from conftest import RANKING_PROMPT, MockLLMGateway, make_page


class TestQueryTerms:

    def test_filters_stop_words_and_short_tokens(self):
        assert query_terms("Fix the login bug in UI") == ["fix", "login", "bug"]

    def test_drops_non_alphabetic(self):
        assert query_terms("deploy v2 release 2024") == ["deploy", "release"]

    def test_keyword_annotation_label_dropped(self):
        assert query_terms("Fix login [Keywords: fix login]") == ["fix", "login"]

    def test_plain_word_keywords_kept(self):
        assert query_terms("rename keywords column") == ["rename", "keywords", "column"]

    def test_repeated_words_counted_once(self):
        assert query_terms("login login bug") == ["login", "bug"]


class TestDateProximity:

    def test_same_time(self, reference_time):
        assert date_proximity_score(reference_time, reference_time) == 1.0

    def test_decays_with_distance(self, reference_time):
        one_week = date_proximity_score(reference_time - timedelta(days=7), reference_time)
        assert one_week == pytest.approx(math.exp(-0.7))

    def test_symmetric(self, reference_time):
        before = date_proximity_score(reference_time - timedelta(days=2), reference_time)
        after = date_proximity_score(reference_time + timedelta(days=2), reference_time)
        assert before == pytest.approx(after)

    def test_missing_values(self, reference_time):
        assert date_proximity_score(None, reference_time) == 0.0
        assert date_proximity_score(reference_time, None) == 0.0

    def test_naive_timestamps_are_utc(self, reference_time):
        naive = reference_time.replace(tzinfo=None)
        assert date_proximity_score(naive, reference_time) == 1.0


class TestLexicalRelevanceScorer:

    @pytest.mark.asyncio
    async def test_title_match_outranks_unrelated(self, sample_pages):
        results = await LexicalRelevanceScorer().score(sample_pages, "login bug")
        scores = {r.page.id: r.relevance_score for r in results}

        assert scores["page-login"] > scores["page-dashboard"]
        assert scores["page-dashboard"] == 0.0

    @pytest.mark.asyncio
    async def test_scores_bounded(self, sample_pages):
        results = await LexicalRelevanceScorer().score(sample_pages, "login login login bug")
        assert all(0.0 <= r.relevance_score <= 1.0 for r in results)

    @pytest.mark.asyncio
    async def test_no_terms_scores_zero(self, sample_pages):
        results = await LexicalRelevanceScorer().score(sample_pages, "the a an")
        assert all(r.relevance_score == 0.0 for r in results)

    def test_score_page_formula(self):
        page = make_page("p", "Login")
        text = page.searchable_text().lower()
        # title count x3 + text count + title bonus
        expected = (3 + 2 + 2) / max(1.0, math.log(len(text) + 1))

        assert LexicalRelevanceScorer().score_page(page, ["login"]) == pytest.approx(min(1.0, expected))

    @pytest.mark.asyncio
    async def test_annotation_does_not_change_score(self, sample_pages):
        scorer = LexicalRelevanceScorer()
        plain = await scorer.score(sample_pages, "login bug")
        annotated = await scorer.score(sample_pages, "login bug [Keywords: login bug]")

        assert [r.relevance_score for r in annotated] == [r.relevance_score for r in plain]

    @pytest.mark.asyncio
    async def test_matches_property_text(self):
        page = make_page("p", "Mobile issue", notes="password reset broken")
        [result] = await LexicalRelevanceScorer().score([page], "password")
        assert result.relevance_score > 0.0


class TestLLMRelevanceScorer:

    @pytest.mark.asyncio
    async def test_uses_model_scores(self, sample_pages, templates, settings):
        gateway = MockLLMGateway(
            {
                RANKING_PROMPT: '```json\n[{"pageId": "page-login", "relevanceScore": 0.95, '
                '"reasoning": "Title mentions the login bug"}]\n```'
            }
        )
        scorer = LLMRelevanceScorer(LanguageAnalyzer(gateway, templates, settings))

        results = await scorer.score(sample_pages, "login bug")
        by_id = {r.page.id: r for r in results}

        assert by_id["page-login"].relevance_score == 0.95
        assert by_id["page-login"].reasoning == "Title mentions the login bug"
        assert by_id["page-dashboard"].relevance_score == 0.0
        assert by_id["page-dashboard"].reasoning is None

    @pytest.mark.asyncio
    async def test_falls_back_to_lexical(self, sample_pages, templates, settings):
        gateway = MockLLMGateway({RANKING_PROMPT: RuntimeError("rate limited")})
        scorer = LLMRelevanceScorer(LanguageAnalyzer(gateway, templates, settings))

        results = await scorer.score(sample_pages, "login bug")
        expected = await LexicalRelevanceScorer().score(sample_pages, "login bug")

        assert [r.relevance_score for r in results] == [r.relevance_score for r in expected]
