"""Tests for blog_search.search.models module."""

from __future__ import annotations

from datetime import date

import pytest

from blog_search.search.models import (
    Article,
    RankedResult,
    SearchPage,
    SearchRequest,
    page_count,
)


class TestPageCount:
    @pytest.mark.parametrize(
        "total, expected",
        [(0, 1), (1, 1), (11, 1), (12, 2), (13, 2), (24, 3), (25, 3)],
    )
    def test_one_more_than_full_pages(self, total: int, expected: int) -> None:
        assert page_count(total, 12) == expected

    def test_search_page_uses_page_count(self) -> None:
        assert SearchPage(results=[], total_matching_rows=24, page=1, page_size=12).pages == 3


class TestSearchRequest:
    def test_defaults(self) -> None:
        request = SearchRequest.from_params()
        assert request == SearchRequest(term="", category=0, tags=(), page=1)

    @pytest.mark.parametrize("page", ["0", "-3", "abc", "", None, 0])
    def test_bad_page_becomes_first(self, page) -> None:
        assert SearchRequest.from_params(page=page).page == 1

    def test_valid_values(self) -> None:
        request = SearchRequest.from_params(term=" soup ", category="4", tags="5, 2,5", page="3")
        assert request.term == "soup"
        assert request.category == 4
        assert request.tags == (2, 5)
        assert request.page == 3

    def test_bad_category_disables_filter(self) -> None:
        assert SearchRequest.from_params(category="x").category == 0

    def test_out_of_range_values_reset(self) -> None:
        request = SearchRequest.from_params(category=str(10 ** 20), page=str(2 ** 63))
        assert request.category == 0
        assert request.page == 1
        assert SearchRequest.from_params(page=str(2 ** 63 - 1)).page == 2 ** 63 - 1

    def test_invalid_tags_dropped(self) -> None:
        assert SearchRequest.from_params(tags="1,x,,3").tags == (1, 3)
        assert SearchRequest.from_params(tags=["7", 2]).tags == (2, 7)
        assert SearchRequest.from_params(tags=4).tags == (4,)

    def test_offset(self) -> None:
        assert SearchRequest(page=1).offset(12) == 0
        assert SearchRequest(page=3).offset(12) == 24


class TestRankedResult:
    def test_ordering_key(self) -> None:
        article = Article(id=1, title="T", date=date(2024, 5, 1), category_id=None)
        result = RankedResult(article, 2, 0.5, 0.3, 10)
        assert result.ordering_key() == (2, 0.5, 0.3, date(2024, 5, 1))
