"""Tests for blog_search.storage.article_storage module."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime

import pytest

from blog_search.storage.article_storage import ArticleStorage


def _row(storage: ArticleStorage, article_id: int):
    return storage.db.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()


class TestTaxonomy:
    def test_get_or_create(self, storage: ArticleStorage) -> None:
        first = storage.save_tag("python")
        assert storage.save_tag(" python ") == first
        assert storage.save_tag("rust") != first

    def test_empty_name(self, storage: ArticleStorage) -> None:
        with pytest.raises(ValueError):
            storage.save_category("  ")


class TestSaveArticle:
    def test_builds_searchable_text(self, storage: ArticleStorage) -> None:
        article_id = storage.save_article({
            "title": "Cats",
            "date": "2024-05-01",
            "summary": "Hats",
            "content": {"blocks": [{"type": "paragraph", "data": {"text": "Dogs"}}]},
        })

        row = _row(storage, article_id)
        assert row["search_text"].split() == ["cat", "cat", "cat", "hat", "dog"]
        assert row["search_length"] == 5
        assert json.loads(row["content"])["blocks"][0]["data"]["text"] == "Dogs"
        assert row["date"] == "2024-05-01"

    def test_date_types(self, storage: ArticleStorage) -> None:
        from_datetime = storage.save_article({"title": "A", "date": datetime(2024, 2, 3, 10, 30)})
        from_date = storage.save_article({"title": "B", "date": date(2024, 2, 4)})
        from_timestamp = storage.save_article({"title": "C", "date": "2024-02-05T08:00:00"})

        assert _row(storage, from_datetime)["date"] == "2024-02-03"
        assert _row(storage, from_date)["date"] == "2024-02-04"
        assert _row(storage, from_timestamp)["date"] == "2024-02-05"

    def test_category_and_tags_by_name(self, storage: ArticleStorage) -> None:
        article_id = storage.save_article({
            "title": "Soup",
            "date": "2024-01-01",
            "category": "Recipes",
            "tags": ["winter", "easy", "winter"],
        })

        row = _row(storage, article_id)
        assert row["category_id"] == storage.save_category("Recipes")
        linked = storage.db.execute(
            "SELECT COUNT(*) FROM article_tags WHERE article_id = ?", (article_id,)
        ).fetchone()[0]
        assert linked == 2

    def test_failed_save_keeps_no_new_taxonomy(self, storage: ArticleStorage) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            storage.save_article({
                "title": "Orphan",
                "date": "2024-01-01",
                "category": "Fresh",
                "tags": ["new-tag", 999],
            })

        db = storage.db
        assert db.execute("SELECT COUNT(*) FROM articles").fetchone()[0] == 0
        assert db.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 0
        assert db.execute("SELECT COUNT(*) FROM tags").fetchone()[0] == 0

    @pytest.mark.parametrize(
        "article",
        [
            {"date": "2024-01-01"},
            {"title": "<b></b>", "date": "2024-01-01"},
            {"title": "No date"},
            {"title": "Bad date", "date": "yesterday"},
        ],
    )
    def test_rejects_malformed(self, storage: ArticleStorage, article) -> None:
        with pytest.raises(ValueError):
            storage.save_article(article)


class TestBatchAndImport:
    def test_batch_skips_malformed(self, storage: ArticleStorage) -> None:
        stats = storage.save_articles_batch([
            {"title": "Good", "date": "2024-01-01"},
            {"title": "", "date": "2024-01-01"},
            {"title": "Also good", "date": "2024-01-02"},
        ])
        assert stats == {"saved": 2, "errors": 1}

    def test_batch_skips_rejected_records(self, storage: ArticleStorage) -> None:
        stats = storage.save_articles_batch([
            {"title": "Good", "date": "2024-01-01"},
            {"title": "Unknown tag", "date": "2024-01-02", "tags": [999]},
            {"title": "Also good", "date": "2024-01-03"},
        ])

        assert stats == {"saved": 2, "errors": 1}
        titles = [r["title"] for r in storage.db.execute("SELECT title FROM articles ORDER BY id")]
        assert titles == ["Good", "Also good"]

    @pytest.mark.parametrize("wrap", [False, True])
    def test_import_file(self, storage: ArticleStorage, tmp_path, wrap: bool) -> None:
        articles = [
            {"title": "One", "date": "2024-01-01", "tags": ["a"]},
            {"title": "Two", "date": "2024-01-02", "category": "News"},
        ]
        path = tmp_path / "articles.json"
        path.write_text(json.dumps({"articles": articles} if wrap else articles), encoding="utf-8")

        assert storage.import_file(path) == {"saved": 2, "errors": 0}


class TestReindex:
    def test_rebuilds_search_text(self, storage: ArticleStorage) -> None:
        article_id = storage.save_article({"title": "Cats", "date": "2024-01-01"})
        storage.db.execute("UPDATE articles SET search_text = '', search_length = 0")
        storage.db.commit()

        assert storage.reindex() == 1
        row = _row(storage, article_id)
        assert row["search_text"] == "cat cat cat"
        assert row["search_length"] == 3
