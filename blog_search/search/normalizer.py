"""
Text normalization utilities for accent-insensitive search.
"""

import re
import html
import json
import unicodedata
from typing import Any, List
import logging

logger = logging.getLogger(__name__)


# Letters that carry their accent in the base glyph and therefore survive
# canonical decomposition unchanged
_STROKED_LETTERS = str.maketrans({
    'ß': 'ss', 'ẞ': 'SS',
    'æ': 'ae', 'Æ': 'AE',
    'œ': 'oe', 'Œ': 'OE',
    'ø': 'o', 'Ø': 'O',
    'đ': 'd', 'Đ': 'D',
    'ð': 'd', 'Ð': 'D',
    'ł': 'l', 'Ł': 'L',
    'ħ': 'h', 'Ħ': 'H',
    'ı': 'i',
    'þ': 'th', 'Þ': 'TH',
})


class TextNormalizer:
    """Normalizes article text for accent-insensitive comparison and indexing."""

    def __init__(self):
        """Initialize text normalizer."""
        self.multiple_spaces = re.compile(r'\s+')
        self.html_tags = re.compile(r'<[^>]+>')

    def strip_diacritics(self, text: str) -> str:
        """
        Remove accents and other diacritics from text.

        "Café Crème" becomes "Cafe Creme". Case is preserved; comparisons
        that must be case-insensitive lowercase on their own.

        Args:
            text: Text to normalize

        Returns:
            Text without diacritics
        """
        if not text:
            return ""

        text = text.translate(_STROKED_LETTERS)
        decomposed = unicodedata.normalize('NFKD', text)
        stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))

        return unicodedata.normalize('NFC', stripped)

    def normalize_title(self, title: str) -> str:
        """
        Normalize article title.

        Args:
            title: Raw title

        Returns:
            Normalized title
        """
        if not title:
            return ""

        title = html.unescape(title)
        title = self.html_tags.sub('', title)
        title = self.multiple_spaces.sub(' ', title)

        return title.strip()

    def content_to_text(self, content: Any) -> str:
        """
        Flatten a structured rich-text payload into plain text.

        The editor stores article bodies as JSON blocks; only the string
        leaves matter for search. Strings that are not JSON are treated as
        HTML fragments.

        Args:
            content: JSON string, decoded JSON value, or plain/HTML text

        Returns:
            Plain text with normalized whitespace
        """
        if content is None:
            return ""

        if isinstance(content, str):
            try:
                content = json.loads(content)
            except (json.JSONDecodeError, TypeError):
                text = html.unescape(self.html_tags.sub(' ', content))
                return self.multiple_spaces.sub(' ', text).strip()

        parts: List[str] = []
        self._collect_strings(content, parts)

        text = ' '.join(parts)
        text = html.unescape(self.html_tags.sub(' ', text))
        return self.multiple_spaces.sub(' ', text).strip()

    def _collect_strings(self, node: Any, parts: List[str]):
        """Walk a decoded JSON value and collect its text leaves."""
        if isinstance(node, str):
            parts.append(node)
        elif isinstance(node, dict):
            for key, value in node.items():
                # Block metadata, not prose
                if key in ('type', 'id', 'url', 'src', 'href', 'style'):
                    continue
                self._collect_strings(value, parts)
        elif isinstance(node, list):
            for item in node:
                self._collect_strings(item, parts)


_normalizer = TextNormalizer()


def normalize(text: str) -> str:
    """
    Strip diacritics from text.

    Used on both stored titles and query terms so that accented and
    unaccented spellings compare equal. Idempotent.

    Args:
        text: Raw text

    Returns:
        Text without diacritics
    """
    return _normalizer.strip_diacritics(text)
