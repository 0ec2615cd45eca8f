"""
Result structures returned by the search core.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Range of a SQLite INTEGER; larger Python ints cannot be bound
SQLITE_MIN_INTEGER = -2 ** 63
SQLITE_MAX_INTEGER = 2 ** 63 - 1


def fits_sqlite_integer(value: int) -> bool:
    return SQLITE_MIN_INTEGER <= value <= SQLITE_MAX_INTEGER


@dataclass(frozen=True)
class Category:
    id: int
    name: str


@dataclass(frozen=True)
class Tag:
    id: int
    name: str


@dataclass(frozen=True)
class Article:
    """A published article. Content is the editor's JSON payload, opaque here."""
    id: int
    title: str
    date: date
    category_id: Optional[int]
    author_id: Optional[int] = None
    image: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None


@dataclass(frozen=True)
class RankedResult:
    """One row of a search window."""
    article: Article
    tag_match_count: int
    text_rank: float
    fuzzy_score: float
    total_matching_rows: int  # Same value on every row of one search

    def ordering_key(self) -> Tuple[int, float, float, date]:
        """Key the rows are sorted by, descending."""
        return (self.tag_match_count, self.text_rank, self.fuzzy_score, self.article.date)


def page_count(total_matching_rows: int, page_size: int) -> int:
    """
    Number of pages to offer for a result count.

    Always one more than the number of full pages: 24 rows at 12 per page
    give 3 pages, 0 rows give 1.
    """
    return total_matching_rows // page_size + 1


@dataclass
class SearchPage:
    """A window of ranked results plus the pagination total."""
    results: List[RankedResult]
    total_matching_rows: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return page_count(self.total_matching_rows, self.page_size)

    @property
    def articles(self) -> List[Article]:
        return [r.article for r in self.results]


def _parse_int(value: Any, default: int) -> int:
    """Parse an int from a request value, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _parse_tags(tags: Any) -> Tuple[int, ...]:
    """Accept a list of ids or a comma separated string; drop invalid tokens."""
    if tags is None:
        return ()

    if isinstance(tags, str):
        tokens: Iterable[Any] = tags.split(',')
    elif isinstance(tags, int):
        tokens = [tags]
    else:
        tokens = tags

    parsed = []
    for token in tokens:
        if isinstance(token, str):
            token = token.strip()
            if not token:
                continue
        try:
            parsed.append(int(token))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid tag id: {token!r}")

    return tuple(sorted(set(parsed)))


@dataclass(frozen=True)
class SearchRequest:
    """
    Search criteria as received from the caller.

    category 0 and an empty tag tuple disable those filters. page is 1-based.
    """
    term: str = ''
    category: int = 0
    tags: Tuple[int, ...] = ()
    page: int = 1

    @classmethod
    def from_params(
        cls,
        term: Optional[str] = None,
        category: Any = None,
        tags: Any = None,
        page: Any = None
    ) -> 'SearchRequest':
        """
        Build a request from raw query parameters.

        An unparsable, non-positive or out of range page becomes 1; an
        unparsable or out of range category becomes 0 (no filter).
        """
        page_number = _parse_int(page, 1)
        if page_number <= 0 or not fits_sqlite_integer(page_number):
            page_number = 1

        category_id = _parse_int(category, 0)
        if not fits_sqlite_integer(category_id):
            category_id = 0

        return cls(
            term=(term or '').strip(),
            category=category_id,
            tags=_parse_tags(tags),
            page=page_number
        )

    def offset(self, page_size: int) -> int:
        return (max(self.page, 1) - 1) * page_size


@dataclass
class ArticleDetail:
    """A single article with its taxonomy and neighbours by publication date."""
    article: Article
    category: Optional[Category]
    tags: List[Tag] = field(default_factory=list)
    previous_article: Optional[Article] = None  # None: this is the oldest article
    next_article: Optional[Article] = None      # None: this is the newest article


@dataclass
class SidePanel:
    """Navigation lists shown next to article pages."""
    categories: List[Category]
    tags: List[Tag]
    recent: List[Article]
