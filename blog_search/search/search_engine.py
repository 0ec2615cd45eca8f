"""
Core search engine: ranked article search, article detail and side panel reads.
"""

import sqlite3
from contextlib import closing
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from .errors import ArticleNotFound, QueryFailure, ScanFailure
from .filters import SearchFilters, TAG_MATCH_COUNT_SQL
from .models import (
    SQLITE_MAX_INTEGER,
    Article,
    ArticleDetail,
    RankedResult,
    SearchPage,
    SearchRequest,
    SidePanel,
    fits_sqlite_integer,
)
from .recommender import SimilarityRecommender
from .rows import ARTICLE_COLUMNS, row_to_article, row_to_category, row_to_tag
from config.search_config import SEARCH_CONFIG, SIDEBAR_CONFIG

logger = logging.getLogger('search')


# The window count runs over the qualified rows before LIMIT/OFFSET, so every
# returned row carries the full total
SEARCH_QUERY = """
    SELECT *, COUNT(*) OVER () AS total_matching_rows
    FROM (
        SELECT
            {columns},
            {tag_match_count} AS tag_match_count,
            text_rank(
                a.search_text,
                :query_lexemes,
                (SELECT AVG(search_length) FROM articles)
            ) AS text_rank,
            similarity(unaccent(a.title), :term) AS fuzzy_score
        FROM articles a
        WHERE {where}
    ) AS scored
    WHERE search_qualifies(:term_active, text_rank, fuzzy_score)
    ORDER BY tag_match_count DESC, text_rank DESC, fuzzy_score DESC, date DESC, id DESC
    LIMIT :limit OFFSET :offset
"""


class SearchEngine:
    """
    Search engine over the article store.

    Features:
    - Ranking by tag matches, stemmed text rank and fuzzy title similarity
    - Category and tag filtering
    - Pagination total computed in the same query as the page
    - Similar-article recommendations
    - Side panel and article detail reads

    Holds no per-request state; each call opens its own connection.
    """

    def __init__(self, db, page_size: Optional[int] = None):
        """
        Initialize search engine.

        Args:
            db: Database providing open_connection() and the relevance scorer
            page_size: Results per page (default from SEARCH_CONFIG)
        """
        self.db = db
        self.scorer = db.scorer
        self.page_size = page_size or SEARCH_CONFIG['page_size']
        self.recommender = SimilarityRecommender(db)

    def _open(self, stage: str) -> sqlite3.Connection:
        try:
            return self.db.open_connection()
        except sqlite3.Error as e:
            raise QueryFailure(f"Could not open database: {e}", stage=stage) from e

    def search(
        self,
        term: Optional[str] = '',
        category: int = 0,
        tags: Iterable[int] = (),
        offset: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[RankedResult], int]:
        """
        Rank qualifying articles and return one window of them.

        Args:
            term: Free-text term, empty for no text filtering
            category: Category id, 0 for no category filter
            tags: Tag ids, empty for no tag filter
            offset: Rows to skip
            limit: Rows to return (default page size)

        Returns:
            Tuple of (ranked results, total matching rows before the window)

        Raises:
            QueryFailure: If the query cannot run; carries the count read so far
            ScanFailure: If a row cannot be decoded; carries the rows read so far
        """
        limit = self.page_size if limit is None else limit
        context = self.scorer.build_context(term, tags)
        where_clause, params = SearchFilters.build_where_clause(category, context.tag_ids)

        params.update({
            'term': context.normalized_term,
            'term_active': int(context.term_active),
            'query_lexemes': context.query_lexemes,
            # A window beyond the largest storable offset is simply empty
            'limit': min(max(int(limit), 0), SQLITE_MAX_INTEGER),
            'offset': min(max(int(offset), 0), SQLITE_MAX_INTEGER),
        })

        sql = SEARCH_QUERY.format(
            columns=ARTICLE_COLUMNS,
            tag_match_count=TAG_MATCH_COUNT_SQL,
            where=where_clause
        )

        logger.info(
            f"Executing search: term='{context.term}', category={params['category']}, "
            f"tags={list(context.tag_ids)}, offset={params['offset']}, limit={params['limit']}"
        )

        results: List[RankedResult] = []
        total = 0

        with closing(self._open('search.connect')) as conn:
            try:
                cursor = conn.execute(sql, params)
            except (sqlite3.Error, OverflowError) as e:
                logger.error(f"Search query failed: {e}")
                raise QueryFailure(str(e), stage='search.execute') from e

            try:
                for row in cursor:
                    total = row['total_matching_rows']
                    try:
                        results.append(RankedResult(
                            article=row_to_article(row),
                            tag_match_count=row['tag_match_count'],
                            text_rank=float(row['text_rank'] or 0.0),
                            fuzzy_score=float(row['fuzzy_score'] or 0.0),
                            total_matching_rows=total
                        ))
                    except (ValueError, TypeError) as e:
                        logger.error(f"Could not decode search row {row['id']}: {e}")
                        raise ScanFailure(
                            f"Could not decode article {row['id']}: {e}",
                            stage='search.scan',
                            results=results,
                            total_matching_rows=total
                        ) from e
            except sqlite3.Error as e:
                logger.error(f"Search scan failed after {len(results)} rows: {e}")
                raise QueryFailure(
                    str(e),
                    stage='search.scan',
                    total_matching_rows=total
                ) from e

        logger.info(f"Search completed: {total} matching, {len(results)} returned")
        return results, total

    def search_page(self, request: SearchRequest) -> SearchPage:
        """
        Run a search for one page of a request.

        Args:
            request: Parsed search request

        Returns:
            SearchPage with results and the pagination total
        """
        page = max(request.page, 1)
        results, total = self.search(
            term=request.term,
            category=request.category,
            tags=request.tags,
            offset=request.offset(self.page_size),
            limit=self.page_size
        )

        return SearchPage(
            results=results,
            total_matching_rows=total,
            page=page,
            page_size=self.page_size
        )

    def similar_articles(self, article_id: int) -> List[Article]:
        """Up to three articles related to the given one. See SimilarityRecommender."""
        return self.recommender.similar_articles(article_id)

    def get_article(self, article_id: int) -> ArticleDetail:
        """
        Load one article with its category, tags and date neighbours.

        Args:
            article_id: Article ID

        Returns:
            ArticleDetail

        Raises:
            ArticleNotFound: If the article does not exist
            QueryFailure: If a read fails
        """
        if not fits_sqlite_integer(article_id):
            raise ArticleNotFound(article_id, stage='article.lookup')

        with closing(self._open('article.connect')) as conn:
            try:
                row = conn.execute(
                    f"SELECT {ARTICLE_COLUMNS} FROM articles a WHERE a.id = ?",
                    (article_id,)
                ).fetchone()

                if row is None:
                    raise ArticleNotFound(article_id, stage='article.lookup')

                article = row_to_article(row)

                category_row = conn.execute(
                    "SELECT id, name FROM categories WHERE id = ?",
                    (article.category_id,)
                ).fetchone()

                tag_rows = conn.execute("""
                    SELECT t.id, t.name
                    FROM tags t
                    JOIN article_tags link ON link.tag_id = t.id
                    WHERE link.article_id = ?
                    ORDER BY t.name, t.id
                """, (article_id,)).fetchall()

                position = {'date': article.date.isoformat(), 'id': article.id}

                previous_row = conn.execute(f"""
                    SELECT {ARTICLE_COLUMNS}
                    FROM articles a
                    WHERE a.date < :date OR (a.date = :date AND a.id < :id)
                    ORDER BY a.date DESC, a.id DESC
                    LIMIT 1
                """, position).fetchone()

                next_row = conn.execute(f"""
                    SELECT {ARTICLE_COLUMNS}
                    FROM articles a
                    WHERE a.date > :date OR (a.date = :date AND a.id > :id)
                    ORDER BY a.date ASC, a.id ASC
                    LIMIT 1
                """, position).fetchone()

                detail = ArticleDetail(
                    article=article,
                    category=row_to_category(category_row) if category_row else None,
                    tags=[row_to_tag(r) for r in tag_rows],
                    previous_article=row_to_article(previous_row) if previous_row else None,
                    next_article=row_to_article(next_row) if next_row else None
                )

            except sqlite3.Error as e:
                raise QueryFailure(str(e), stage='article.lookup') from e
            except (ValueError, TypeError) as e:
                raise ScanFailure(str(e), stage='article.decode') from e

        return detail

    def side_panel(self) -> SidePanel:
        """
        Read all categories, all tags and the most recent articles.

        Stops at the first failing read.

        Returns:
            SidePanel

        Raises:
            QueryFailure: Naming the read that failed
        """
        recent_limit = SIDEBAR_CONFIG['recent_limit']

        with closing(self._open('sidebar.connect')) as conn:
            categories = self._read_all(
                conn, 'sidebar.categories',
                "SELECT id, name FROM categories ORDER BY name, id",
                (), row_to_category
            )
            tags = self._read_all(
                conn, 'sidebar.tags',
                "SELECT id, name FROM tags ORDER BY name, id",
                (), row_to_tag
            )
            recent = self._read_all(
                conn, 'sidebar.recent',
                f"SELECT {ARTICLE_COLUMNS} FROM articles a ORDER BY a.date DESC, a.id DESC LIMIT ?",
                (recent_limit,), row_to_article
            )

        return SidePanel(categories=categories, tags=tags, recent=recent)

    def _read_all(self, conn: sqlite3.Connection, stage: str, sql: str, params, decode) -> List:
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Read {stage} failed: {e}")
            raise QueryFailure(str(e), stage=stage) from e

        items = []
        for row in rows:
            try:
                items.append(decode(row))
            except (ValueError, TypeError) as e:
                raise ScanFailure(str(e), stage=stage, results=items) from e
        return items

    def get_stats(self) -> Dict[str, Any]:
        """
        Get article store statistics.

        Returns:
            Dictionary with statistics
        """
        with closing(self._open('stats.connect')) as conn:
            try:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM articles")
                total_articles = cursor.fetchone()['count']

                cursor.execute("SELECT COUNT(*) AS count FROM categories")
                categories_count = cursor.fetchone()['count']

                cursor.execute("SELECT COUNT(*) AS count FROM tags")
                tags_count = cursor.fetchone()['count']

                cursor.execute("""
                    SELECT
                        MIN(date) AS earliest,
                        MAX(date) AS latest
                    FROM articles
                """)
                date_row = cursor.fetchone()

            except sqlite3.Error as e:
                raise QueryFailure(str(e), stage='stats') from e

        return {
            'total_articles': total_articles,
            'categories_count': categories_count,
            'tags_count': tags_count,
            'date_range': {
                'earliest': date_row['earliest'] if date_row else None,
                'latest': date_row['latest'] if date_row else None
            }
        }
