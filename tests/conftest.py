"""Shared fixtures: a fresh SQLite article store per test."""

from __future__ import annotations

from datetime import date

import pytest

from blog_search.search.search_engine import SearchEngine
from blog_search.storage.article_storage import ArticleStorage
from blog_search.storage.database import Database, init_database


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "blog.db")


@pytest.fixture
def db(db_path) -> Database:
    database = init_database(db_path)
    yield database
    database.close()


@pytest.fixture
def storage(db) -> ArticleStorage:
    return ArticleStorage(db.connect(), db.scorer.ranker)


@pytest.fixture
def engine(db) -> SearchEngine:
    return SearchEngine(db)


@pytest.fixture
def add_article(storage):
    """Save an article with sensible defaults and return its id."""

    def _add(
        title: str,
        day: date | str = date(2024, 1, 1),
        tags: tuple = (),
        category: str | None = None,
        summary: str | None = None,
        content=None,
    ) -> int:
        return storage.save_article(
            {
                "title": title,
                "date": day,
                "tags": list(tags),
                "category": category,
                "summary": summary,
                "content": content,
            }
        )

    return _add
