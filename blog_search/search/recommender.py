"""
Similar-article recommendations.

Every other article is scored against the source article:

    combined_score = shared_tags * SHARED_TAG_WEIGHT + text_rank

where shared_tags counts tags both articles carry and text_rank ranks the
candidate's searchable text against the source body used as a
natural-language query. Ties go to the newer article.
"""

import sqlite3
from contextlib import closing
from typing import List, Optional
import logging

from .errors import ArticleNotFound, QueryFailure, ScanFailure
from .models import Article, fits_sqlite_integer
from .normalizer import TextNormalizer
from .rows import ARTICLE_COLUMNS, row_to_article
from config.search_config import RECOMMEND_CONFIG

logger = logging.getLogger('search')

# One shared tag is worth two units of text rank
SHARED_TAG_WEIGHT = RECOMMEND_CONFIG['shared_tag_weight']


SIMILAR_QUERY = f"""
    SELECT *, shared_tags * :tag_weight + text_rank AS combined_score
    FROM (
        SELECT
            {ARTICLE_COLUMNS},
            (
                SELECT COUNT(*)
                FROM article_tags m
                WHERE m.article_id = a.id
                  AND m.tag_id IN (
                      SELECT tag_id FROM article_tags WHERE article_id = :source_id
                  )
            ) AS shared_tags,
            text_rank(
                a.search_text,
                :query_lexemes,
                (SELECT AVG(search_length) FROM articles)
            ) AS text_rank
        FROM articles a
        WHERE a.id != :source_id
    ) AS scored
    WHERE shared_tags * :tag_weight + text_rank > 0
    ORDER BY combined_score DESC, date DESC, id DESC
    LIMIT :limit
"""


class SimilarityRecommender:
    """Finds articles related to a given one. Read-only, recomputed per call."""

    def __init__(self, db, limit: Optional[int] = None, tag_weight: Optional[float] = None):
        """
        Initialize recommender.

        Args:
            db: Database providing open_connection()
            limit: Maximum recommendations (default from RECOMMEND_CONFIG)
            tag_weight: Score per shared tag (default SHARED_TAG_WEIGHT)
        """
        self.db = db
        self.limit = limit or RECOMMEND_CONFIG['similar_limit']
        self.tag_weight = SHARED_TAG_WEIGHT if tag_weight is None else tag_weight
        self.normalizer = TextNormalizer()

    def similar_articles(self, article_id: int) -> List[Article]:
        """
        Return up to `limit` articles most similar to the given one.

        Args:
            article_id: Source article ID

        Returns:
            Articles ordered by combined score, then date, newest first.
            Empty when nothing shares a tag or a word with the source.

        Raises:
            ArticleNotFound: If the source article does not exist
            QueryFailure: If the store cannot run the query
            ScanFailure: If a candidate row cannot be decoded
        """
        if not fits_sqlite_integer(article_id):
            raise ArticleNotFound(article_id, stage='similar.source')

        try:
            conn = self.db.open_connection()
        except sqlite3.Error as e:
            raise QueryFailure(f"Could not open database: {e}", stage='similar.connect') from e

        with closing(conn):
            try:
                row = conn.execute(
                    "SELECT content FROM articles WHERE id = ?", (article_id,)
                ).fetchone()
            except sqlite3.Error as e:
                raise QueryFailure(str(e), stage='similar.source') from e

            if row is None:
                raise ArticleNotFound(article_id, stage='similar.source')

            body = self.normalizer.content_to_text(row['content'])
            query_lexemes = self.db.scorer.ranker.build_query(body)

            params = {
                'source_id': article_id,
                'query_lexemes': query_lexemes,
                'tag_weight': self.tag_weight,
                'limit': self.limit,
            }

            similar = []
            try:
                for candidate in conn.execute(SIMILAR_QUERY, params):
                    try:
                        similar.append(row_to_article(candidate))
                    except (ValueError, TypeError) as e:
                        raise ScanFailure(
                            f"Could not decode article {candidate['id']}: {e}",
                            stage='similar.scan',
                            results=similar
                        ) from e
            except sqlite3.Error as e:
                raise QueryFailure(str(e), stage='similar.scan') from e

        logger.debug(
            f"Similar to article {article_id}: {[a.id for a in similar]} "
            f"({len(query_lexemes.split())} query lexemes)"
        )
        return similar
