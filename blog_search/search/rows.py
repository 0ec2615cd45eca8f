"""
Decoding of article rows into result structures.
"""

import sqlite3
from datetime import date

from .models import Article, Category, Tag

# Article fields selected from alias "a"
ARTICLE_COLUMNS = (
    "a.id, a.title, a.image, a.date, a.summary, "
    "a.category_id, a.content, a.author_id"
)


def row_to_article(row: sqlite3.Row) -> Article:
    """
    Decode an article row.

    Raises:
        ValueError: If the stored date is not an ISO calendar date
        TypeError: If a required column is NULL
    """
    return Article(
        id=int(row['id']),
        title=row['title'],
        date=date.fromisoformat(row['date']),
        category_id=row['category_id'],
        author_id=row['author_id'],
        image=row['image'],
        summary=row['summary'],
        content=row['content']
    )


def row_to_category(row: sqlite3.Row) -> Category:
    return Category(id=row['id'], name=row['name'])


def row_to_tag(row: sqlite3.Row) -> Tag:
    return Tag(id=row['id'], name=row['name'])
