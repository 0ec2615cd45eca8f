"""
Article storage module for saving articles, categories and tags.

Writing an article also builds its searchable text, so the search index is
always in step with the stored content.
"""

import sqlite3
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union
import logging

from ..search.normalizer import TextNormalizer
from ..search.text_rank import TextRanker

logger = logging.getLogger(__name__)


class ArticleStorage:
    """Manages storing articles and their taxonomy in the SQLite database."""

    def __init__(self, db_connection: sqlite3.Connection, ranker: TextRanker):
        """
        Initialize article storage.

        Args:
            db_connection: SQLite database connection
            ranker: Text ranker that builds the searchable text
        """
        self.db = db_connection
        self.ranker = ranker
        self.normalizer = TextNormalizer()

    def save_category(self, name: str) -> int:
        """
        Return the id of a category, creating it if needed.

        Args:
            name: Category name

        Returns:
            Category ID
        """
        category_id = self._get_or_create('categories', name)
        self.db.commit()
        return category_id

    def save_tag(self, name: str) -> int:
        """
        Return the id of a tag, creating it if needed.

        Args:
            name: Tag name

        Returns:
            Tag ID
        """
        tag_id = self._get_or_create('tags', name)
        self.db.commit()
        return tag_id

    def _get_or_create(self, table: str, name: str) -> int:
        """Look up or insert a name row. Leaves the transaction open."""
        name = (name or '').strip()
        if not name:
            raise ValueError(f"Empty name for {table}")

        cursor = self.db.cursor()
        cursor.execute(f"SELECT id FROM {table} WHERE name = ?", (name,))
        row = cursor.fetchone()
        if row:
            return row['id']

        cursor.execute(f"INSERT INTO {table} (name) VALUES (?)", (name,))
        logger.debug(f"Created {table[:-1]} '{name}' (ID: {cursor.lastrowid})")
        return cursor.lastrowid

    def save_article(self, article: Dict[str, Any]) -> int:
        """
        Save a single article with its tag links.

        Args:
            article: Article dictionary
                - title: Article title (required)
                - date: Publication date, date or YYYY-MM-DD (required)
                - summary, image, author_id: Optional fields
                - category: Category name, or category_id
                - content: Editor JSON payload (dict, list or string)
                - tags: Tag names or tag ids

        Returns:
            Article ID

        Raises:
            ValueError: If required fields are missing or malformed
            sqlite3.Error: If the write fails; nothing from the article is kept
        """
        title = self.normalizer.normalize_title(article.get('title', ''))
        if not title:
            raise ValueError("Article title is required")

        published = self._parse_date(article.get('date'))

        content = article.get('content')
        if content is not None and not isinstance(content, str):
            content = json.dumps(content, ensure_ascii=False)

        summary = article.get('summary')
        search_text, search_length = self.ranker.build_document(
            title,
            summary,
            self.normalizer.content_to_text(content)
        )

        # New categories and tags commit together with the article
        try:
            category_id = article.get('category_id')
            if category_id is None and article.get('category'):
                category_id = self._get_or_create('categories', article['category'])

            tag_ids = [self._resolve_tag(tag) for tag in article.get('tags', [])]

            cursor = self.db.cursor()
            cursor.execute("""
                INSERT INTO articles (
                    title, image, date, summary, category_id, content,
                    author_id, search_text, search_length
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                title,
                article.get('image'),
                published.isoformat(),
                summary,
                category_id,
                content,
                article.get('author_id'),
                search_text,
                search_length
            ))

            article_id = cursor.lastrowid

            cursor.executemany(
                "INSERT OR IGNORE INTO article_tags (article_id, tag_id) VALUES (?, ?)",
                [(article_id, tag_id) for tag_id in tag_ids]
            )

            self.db.commit()

        except (sqlite3.Error, ValueError, OverflowError) as e:
            logger.error(f"Error saving article '{title[:50]}': {e}")
            self.db.rollback()
            raise

        logger.info(f"Saved article: {title[:50]} (ID: {article_id}, tags: {len(tag_ids)})")
        return article_id

    def save_articles_batch(self, articles: Iterable[Dict[str, Any]]) -> Dict[str, int]:
        """
        Save multiple articles, skipping malformed or rejected records.

        Args:
            articles: Article dictionaries

        Returns:
            Dictionary with statistics (saved, errors)
        """
        stats = {
            'saved': 0,
            'errors': 0
        }

        for article in articles:
            try:
                self.save_article(article)
                stats['saved'] += 1
            except (ValueError, OverflowError, sqlite3.Error) as e:
                logger.warning(f"Skipping article '{article.get('title', 'unknown')}': {e}")
                stats['errors'] += 1

        logger.info(f"Batch save complete - Saved: {stats['saved']}, Errors: {stats['errors']}")
        return stats

    def import_file(self, path: Union[str, Path]) -> Dict[str, int]:
        """
        Import articles from a JSON file.

        The file holds either a list of articles or an object with an
        "articles" list.

        Args:
            path: Path to the JSON file

        Returns:
            Batch statistics
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        articles = data.get('articles', []) if isinstance(data, dict) else data
        logger.info(f"Importing {len(articles)} articles from {path}")

        return self.save_articles_batch(articles)

    def reindex(self) -> int:
        """
        Rebuild the searchable text of every article.

        Needed after changing the stemming language or the title weight.

        Returns:
            Number of articles reindexed
        """
        cursor = self.db.cursor()
        cursor.execute("SELECT id, title, summary, content FROM articles")
        rows = cursor.fetchall()

        updates = []
        for row in rows:
            search_text, search_length = self.ranker.build_document(
                row['title'],
                row['summary'],
                self.normalizer.content_to_text(row['content'])
            )
            updates.append((search_text, search_length, row['id']))

        cursor.executemany(
            "UPDATE articles SET search_text = ?, search_length = ? WHERE id = ?",
            updates
        )
        self.db.commit()

        logger.info(f"Reindexed {len(updates)} articles")
        return len(updates)

    def _resolve_tag(self, tag: Union[int, str]) -> int:
        """Tags may be given as existing ids or as names."""
        if isinstance(tag, int):
            return tag
        return self._get_or_create('tags', str(tag))

    @staticmethod
    def _parse_date(value: Optional[Union[date, str]]) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not value:
            raise ValueError("Article date is required")
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            raise ValueError(f"Invalid article date: {value!r}")
