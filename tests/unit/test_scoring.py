"""Tests for blog_search.search.scoring module."""

from __future__ import annotations

import sqlite3

import pytest

from blog_search.search.scoring import RelevanceScorer, similarity, trigrams
from blog_search.search.text_rank import TextRanker


@pytest.fixture
def scorer() -> RelevanceScorer:
    return RelevanceScorer(TextRanker(), fuzzy_threshold=0.2)


class TestTrigrams:
    def test_padding(self) -> None:
        assert trigrams("cat") == {"  c", " ca", "cat", "at "}

    def test_lowercases(self) -> None:
        assert trigrams("CAT") == trigrams("cat")

    def test_empty(self) -> None:
        assert trigrams("") == frozenset()


class TestSimilarity:
    def test_identical(self) -> None:
        assert similarity("garden", "Garden") == 1.0

    def test_single_typo(self) -> None:
        assert similarity("hello", "helo") == pytest.approx(4 / 7)
        assert similarity("Coffee", "cofee") == pytest.approx(0.625)

    def test_unrelated(self) -> None:
        assert similarity("abc", "xyz") == 0.0

    def test_symmetric(self) -> None:
        assert similarity("tomato soup", "soup") == similarity("soup", "tomato soup")

    def test_empty(self) -> None:
        assert similarity("", "") == 0.0
        assert similarity(None, "cat") == 0.0


class TestBuildContext:
    def test_term_normalized(self, scorer: RelevanceScorer) -> None:
        context = scorer.build_context("  Café   crème ", [3, 1, 3])
        assert context.normalized_term == "Cafe creme"
        assert context.query_lexemes == scorer.ranker.build_query("cafe creme")
        assert context.tag_ids == (1, 3)
        assert context.term_active
        assert context.tag_filter_active

    def test_empty_term_inactive(self, scorer: RelevanceScorer) -> None:
        context = scorer.build_context(None)
        assert not context.term_active
        assert not context.tag_filter_active
        assert context.query_lexemes == ""


class TestQualifies:
    def test_empty_term_matches_everything(self, scorer: RelevanceScorer) -> None:
        assert scorer.qualifies(False, 0.0, 0.0)

    def test_text_rank_qualifies(self, scorer: RelevanceScorer) -> None:
        assert scorer.qualifies(True, 0.1, 0.0)

    def test_fuzzy_must_exceed_threshold(self, scorer: RelevanceScorer) -> None:
        assert scorer.qualifies(True, 0.0, 0.21)
        assert not scorer.qualifies(True, 0.0, 0.2)

    def test_nothing_matches(self, scorer: RelevanceScorer) -> None:
        assert not scorer.qualifies(True, 0.0, 0.0)
        assert not scorer.qualifies(True, None, None)


class TestRegisterFunctions:
    def test_functions_callable_from_sql(self, scorer: RelevanceScorer) -> None:
        conn = sqlite3.connect(":memory:")
        try:
            scorer.register_functions(conn)
            row = conn.execute(
                "SELECT unaccent('café'), similarity('hello', 'helo'), "
                "text_rank('cat hat', 'cat', 2.0), search_qualifies(1, 0.0, 0.1)"
            ).fetchone()
        finally:
            conn.close()

        assert row[0] == "cafe"
        assert row[1] == pytest.approx(4 / 7)
        assert row[2] == pytest.approx(1.0)
        assert row[3] == 0
