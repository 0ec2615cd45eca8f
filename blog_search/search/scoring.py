"""
Relevance signals for article search.

Each candidate article gets three independent signals:

- tag_match_count: requested tags the article carries (0 without a tag filter)
- text_rank: stemmed full-text rank of title + summary + body (see text_rank.py)
- fuzzy_score: trigram similarity of the accent-free title and term, in [0, 1]

Results are ordered by (tag_match_count, text_rank, fuzzy_score, date), all
descending. The signal functions are registered on every database connection
so the ordering and the qualification predicate run inside a single query.
"""

import re
import sqlite3
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Iterable, Optional, Tuple
import logging

from .normalizer import normalize
from .text_rank import TextRanker

logger = logging.getLogger(__name__)

WORD_PATTERN = re.compile(r'\w+')


def trigrams(text: str) -> FrozenSet[str]:
    """
    Character trigrams of text, the way pg_trgm extracts them.

    Each lowercase word is padded with two spaces in front and one behind,
    so "cat" yields "  c", " ca", "cat", "at ".

    Args:
        text: Input text

    Returns:
        Set of trigrams
    """
    if not text:
        return frozenset()
    return _word_trigrams(tuple(WORD_PATTERN.findall(text.lower())))


@lru_cache(maxsize=1024)
def _word_trigrams(words: Tuple[str, ...]) -> FrozenSet[str]:
    grams = set()
    for word in words:
        padded = f"  {word} "
        grams.update(padded[i:i + 3] for i in range(len(padded) - 2))
    return frozenset(grams)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Trigram similarity of two strings.

    Shared trigrams divided by distinct trigrams of both strings. Registered
    as the store-side similarity() function.

    Returns:
        Similarity between 0.0 (nothing shared) and 1.0 (same trigram sets)
    """
    grams_a = trigrams(a or '')
    grams_b = trigrams(b or '')

    union = len(grams_a | grams_b)
    if union == 0:
        return 0.0

    return len(grams_a & grams_b) / union


@dataclass(frozen=True)
class SearchContext:
    """Search inputs prepared once per query."""
    term: str                 # Raw term as received
    normalized_term: str      # Accent-free term, compared with accent-free titles
    query_lexemes: str        # Stemmed term for text_rank()
    tag_ids: Tuple[int, ...]  # Requested tags, empty when the filter is off

    @property
    def term_active(self) -> bool:
        """A term that normalizes to nothing matches every article."""
        return bool(self.normalized_term)

    @property
    def tag_filter_active(self) -> bool:
        return bool(self.tag_ids)


class RelevanceScorer:
    """Computes search signals and decides which articles qualify."""

    def __init__(self, ranker: TextRanker, fuzzy_threshold: float = 0.2):
        """
        Initialize relevance scorer.

        Args:
            ranker: Stemmed text ranker shared with the article storage
            fuzzy_threshold: Title similarity an article must exceed to qualify
                on fuzziness alone
        """
        self.ranker = ranker
        self.fuzzy_threshold = fuzzy_threshold

    def build_context(self, term: Optional[str], tag_ids: Iterable[int] = ()) -> SearchContext:
        """
        Prepare a query term and tag filter for scoring.

        Args:
            term: Free-text search term (may be empty)
            tag_ids: Requested tag ids (empty disables the tag filter)

        Returns:
            SearchContext
        """
        term = term or ''
        normalized_term = ' '.join(normalize(term).split())

        return SearchContext(
            term=term,
            normalized_term=normalized_term,
            query_lexemes=self.ranker.build_query(term),
            tag_ids=tuple(sorted(set(tag_ids)))
        )

    def qualifies(self, term_active: bool, text_rank: float, fuzzy_score: float) -> bool:
        """
        Qualification predicate applied after the category and tag filters.

        Registered as the store-side search_qualifies() function.
        """
        if not term_active:
            return True
        return (text_rank or 0.0) > 0 or (fuzzy_score or 0.0) > self.fuzzy_threshold

    def register_functions(self, conn: sqlite3.Connection):
        """
        Install the search functions on a database connection.

        Args:
            conn: SQLite connection
        """
        conn.create_function('unaccent', 1, normalize, deterministic=True)
        conn.create_function('similarity', 2, similarity, deterministic=True)
        conn.create_function('text_rank', 3, self.ranker.rank, deterministic=True)
        conn.create_function(
            'search_qualifies', 3,
            lambda active, rank, fuzzy: int(self.qualifies(bool(active), rank, fuzzy)),
            deterministic=True
        )
