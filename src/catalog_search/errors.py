# errors.py
from __future__ import annotations

from typing import Any, Optional


class CatalogSearchError(Exception):
    """Base class for every error raised by catalog_search."""


class DataSourceError(CatalogSearchError):
    """Product dataset is missing, unreadable or malformed."""


class BackendConnectionError(CatalogSearchError):
    """Backend cannot be reached or rejected the health check."""


class IndexLifecycleError(CatalogSearchError):
    """exists / delete / create step failed during a rebuild."""

    def __init__(self, operation: str, index_name: str, message: str):
        self.operation = operation
        self.index_name = index_name
        super().__init__(f"{operation} failed for index '{index_name}': {message}")


class LoadError(CatalogSearchError):
    """
    Bulk write failed wholly or partially.

    `report` holds the LoadReport built so far, so the caller can see how
    many documents were accepted before the failure.
    """

    def __init__(self, index_name: str, message: str, report: Optional[Any] = None):
        self.index_name = index_name
        self.report = report
        super().__init__(f"bulk load into '{index_name}' failed: {message}")


class SearchError(CatalogSearchError):
    def __init__(self, index_name: str, keyword: str, message: str):
        self.index_name = index_name
        self.keyword = keyword
        super().__init__(f"search on '{index_name}' for {keyword!r} failed: {message}")


class IndexNotFoundError(SearchError):
    """Searched index does not exist (ABSENT state)."""


class MalformedResponseError(SearchError):
    """Backend answered, but the body is not a usable hit list."""
