"""
Filter builder for article search WHERE clauses.

Filter values always travel as bound parameters. The requested tag ids are
bound as one JSON array and expanded by SQLite's json_each(), so a variable
number of tags never changes the query text.
"""

import json
from typing import Any, Dict, Iterable, Tuple
import logging

logger = logging.getLogger(__name__)


# Requested tags carried by article a
TAG_MATCH_COUNT_SQL = """(
    SELECT COUNT(*)
    FROM article_tags m
    WHERE m.article_id = a.id
      AND m.tag_id IN (SELECT value FROM json_each(:tags))
)"""


class SearchFilters:
    """Builds parameterized WHERE clauses for article search."""

    @staticmethod
    def build_where_clause(category: int, tag_ids: Iterable[int]) -> Tuple[str, Dict[str, Any]]:
        """
        Build a WHERE clause from filter parameters.

        Args:
            category: Category id, 0 for no category filter
            tag_ids: Requested tag ids, empty for no tag filter. An article
                passes when it carries at least one of them.

        Returns:
            Tuple of (SQL condition over alias "a", bound parameters)
        """
        tag_ids = sorted(set(int(t) for t in tag_ids))
        params: Dict[str, Any] = {
            'category': int(category or 0),
            'tags': json.dumps(tag_ids),
        }

        conditions = []

        if params['category']:
            conditions.append("a.category_id = :category")

        if tag_ids:
            conditions.append(f"{TAG_MATCH_COUNT_SQL} > 0")

        where_clause = " AND ".join(conditions) if conditions else "1 = 1"
        logger.debug(f"Built WHERE clause: {where_clause} with {params}")

        return where_clause, params
