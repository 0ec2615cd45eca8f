"""Tests for blog_search.search.normalizer module."""

from __future__ import annotations

import json

import pytest

from blog_search.search.normalizer import TextNormalizer, normalize


class TestNormalize:
    def test_strips_acute_accent(self) -> None:
        assert normalize("café") == "cafe"

    def test_preserves_case(self) -> None:
        assert normalize("Crème Brûlée") == "Creme Brulee"

    def test_stroked_letters(self) -> None:
        assert normalize("Łódź straße øre") == "Lodz strasse ore"

    def test_plain_ascii_unchanged(self) -> None:
        assert normalize("Plain text 123") == "Plain text 123"

    def test_empty(self) -> None:
        assert normalize("") == ""
        assert normalize(None) == ""

    def test_decomposed_input_matches_composed(self) -> None:
        composed = "\u00e9"
        decomposed = "e\u0301"
        assert normalize(composed) == normalize(decomposed) == "e"

    @pytest.mark.parametrize(
        "text",
        ["café", "Ångström", "ﬁancée", "naïve façade", "Đorđe", "日本語", "Ελληνικά", "é́"],
    )
    def test_idempotent(self, text: str) -> None:
        once = normalize(text)
        assert normalize(once) == once


class TestNormalizeTitle:
    def test_unescapes_and_strips_tags(self) -> None:
        normalizer = TextNormalizer()
        assert normalizer.normalize_title("  Fish &amp; <b>Chips</b>  ") == "Fish & Chips"

    def test_collapses_whitespace(self) -> None:
        normalizer = TextNormalizer()
        assert normalizer.normalize_title("A\n  long\ttitle") == "A long title"


class TestContentToText:
    def test_editor_blocks(self) -> None:
        content = {
            "blocks": [
                {"type": "header", "data": {"text": "Intro", "level": 2}},
                {"type": "paragraph", "data": {"text": "Hello <i>world</i>"}},
                {"type": "list", "data": {"items": ["one", "two"]}},
            ]
        }
        text = TextNormalizer().content_to_text(json.dumps(content))
        assert text == "Intro Hello world one two"

    def test_skips_metadata_keys(self) -> None:
        content = [{"type": "image", "url": "http://x/y.png", "caption": "A cat"}]
        assert TextNormalizer().content_to_text(content) == "A cat"

    def test_plain_html_string(self) -> None:
        assert TextNormalizer().content_to_text("<p>Just <b>text</b></p>") == "Just text"

    def test_none(self) -> None:
        assert TextNormalizer().content_to_text(None) == ""
