"""
Stemmed full-text ranking for articles.

Articles carry a precomputed searchable text: the stemmed lexemes of their
title, summary and body. Queries are stemmed the same way and scored against
it with the BM25 term-frequency component.

BM25 term weight:
tf(q,D) * (k1 + 1) / (tf(q,D) + k1 * (1 - b + b * |D| / avgdl))

Where:
- tf(q,D) = frequency of lexeme q in document D
- |D| = number of lexemes in D
- avgdl = average number of lexemes across all articles
- k1, b = tuning parameters (typically k1=1.5, b=0.75)

The inverse document frequency factor is left out so that a score depends
only on the article and the query, never on which other articles happen to
survive the filters.
"""

import re
from collections import Counter
from functools import lru_cache
from typing import List, Optional, Tuple
import logging

import snowballstemmer

from .normalizer import normalize

logger = logging.getLogger(__name__)


# Function words dropped before stemming
STOP_WORDS = frozenset("""
a about above after again against all am an and any are as at be because been
before being below between both but by can could did do does doing down during
each few for from further had has have having he her here hers herself him
himself his how i if in into is it its itself just me more most my myself no nor
not now of off on once only or other our ours ourselves out over own same she
should so some such than that the their theirs them themselves then there these
they this those through to too under until up very was we were what when where
which while who whom why will with would you your yours yourself yourselves
""".split())

TOKEN_PATTERN = re.compile(r'\b\w+\b')


class TextRanker:
    """
    Builds searchable text and ranks it against natural-language queries.

    Instances hold configuration only; stemmers are created per call so a
    ranker can be shared between threads.
    """

    def __init__(
        self,
        language: str = 'english',
        k1: float = 1.5,
        b: float = 0.75,
        title_weight: int = 3
    ):
        """
        Initialize text ranker.

        Args:
            language: Snowball stemmer language
            k1: Term frequency saturation parameter (1.2-2.0, default 1.5)
            b: Length normalization parameter (0-1, default 0.75)
            title_weight: How many times the title is counted in the searchable text
        """
        if language not in snowballstemmer.algorithms():
            raise ValueError(f"No stemmer available for language '{language}'")

        self.language = language
        self.k1 = k1
        self.b = b
        self.title_weight = title_weight

    def tokenize(self, text: str) -> List[str]:
        """
        Split text into lowercase, accent-free word tokens.

        Args:
            text: Input text

        Returns:
            List of tokens
        """
        if not text:
            return []
        return TOKEN_PATTERN.findall(normalize(text).lower())

    def lexemes(self, text: str) -> List[str]:
        """
        Tokenize, drop stop words and stem.

        Args:
            text: Input text

        Returns:
            Stemmed lexemes in document order
        """
        tokens = [t for t in self.tokenize(text) if t not in STOP_WORDS and not t.isdigit()]
        if not tokens:
            return []

        stemmer = snowballstemmer.stemmer(self.language)
        return stemmer.stemWords(tokens)

    def build_document(
        self,
        title: str,
        summary: Optional[str],
        body: Optional[str]
    ) -> Tuple[str, int]:
        """
        Build the searchable text stored alongside an article.

        Args:
            title: Article title
            summary: Article summary (optional)
            body: Plain text extracted from the article content

        Returns:
            Tuple of (space separated lexemes, lexeme count)
        """
        title_lexemes = self.lexemes(title)
        lexemes = title_lexemes * self.title_weight
        lexemes += self.lexemes(summary or '')
        lexemes += self.lexemes(body or '')

        return ' '.join(lexemes), len(lexemes)

    def build_query(self, text: str) -> str:
        """
        Turn a natural-language query into distinct lexemes.

        Args:
            text: Query text (a search term or a whole article body)

        Returns:
            Space separated distinct lexemes, empty when nothing is searchable
        """
        seen = dict.fromkeys(self.lexemes(text))
        return ' '.join(seen)

    def rank(self, document: Optional[str], query: Optional[str], avgdl: Optional[float]) -> float:
        """
        Score a searchable text against a query.

        Registered as the store-side text_rank() function.

        Args:
            document: Space separated document lexemes
            query: Space separated query lexemes
            avgdl: Average document length across the collection

        Returns:
            Non-negative score, 0.0 when no query lexeme occurs in the document
        """
        if not document or not query:
            return 0.0

        query_terms = _split_query(query)
        term_freqs = Counter(document.split())
        doc_length = sum(term_freqs.values())

        if not avgdl or avgdl <= 0:
            avgdl = doc_length

        score = 0.0
        for term in query_terms:
            f = term_freqs.get(term, 0)
            if f == 0:
                continue

            numerator = f * (self.k1 + 1)
            denominator = f + self.k1 * (1 - self.b + self.b * doc_length / avgdl)
            score += numerator / denominator

        return score


@lru_cache(maxsize=256)
def _split_query(query: str) -> Tuple[str, ...]:
    """Split a lexeme query once per distinct query string."""
    return tuple(query.split())
