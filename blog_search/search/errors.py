"""
Errors raised by the search core.

All of them end the current call; nothing is retried inside the core.
"""

from typing import List, Optional


class SearchError(Exception):
    """Base class for search failures."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"[{self.stage}] {message}"
        return message


class QueryFailure(SearchError):
    """
    A query could not run (store unreachable, malformed filter, failed fetch).

    Carries the matching-row count read before the failure, 0 if the first
    row never arrived. No rows are returned with it.
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        total_matching_rows: int = 0
    ):
        super().__init__(message, stage)
        self.total_matching_rows = total_matching_rows
        self.results: List = []


class ScanFailure(SearchError):
    """
    A row failed to decode mid-scan.

    Carries the rows decoded before the bad one and the count read so far.
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        results: Optional[List] = None,
        total_matching_rows: int = 0
    ):
        super().__init__(message, stage)
        self.results = results or []
        self.total_matching_rows = total_matching_rows


class ArticleNotFound(SearchError):
    """The requested article does not exist."""

    def __init__(self, article_id: int, stage: Optional[str] = None):
        super().__init__(f"Article {article_id} not found", stage)
        self.article_id = article_id
