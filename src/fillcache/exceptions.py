"""Custom exceptions for the hourly fill cache.

Query-boundary errors live here so the evaluator, the fill sources and
the query session can share them without circular imports.
"""


class FillCacheError(Exception):
    """Base exception for all fill cache errors."""


class QueryError(FillCacheError):
    """Raised when a query string cannot be turned into a Query.

    ``component`` names the offending part: "query", "type",
    "start_time" or "end_time".
    """

    def __init__(self, message: str, component: str) -> None:
        super().__init__(message)
        self.component = component


class MalformedQuery(QueryError):
    """Raised on a wrong token count or an unparsable timestamp."""


class UnknownQueryType(QueryError):
    """Raised when the query type is not one of B, S, C, V."""

    def __init__(self, query_type: str) -> None:
        super().__init__(f"Invalid query type: {query_type}", component="type")
        self.query_type = query_type


class FetchFailed(FillCacheError):
    """Raised when the fill source fails to deliver an hour bucket.

    The underlying source exception is chained as ``__cause__``.
    """

    def __init__(self, window_start: int, window_end: int) -> None:
        super().__init__(f"Failed to fetch fills for window [{window_start}, {window_end})")
        self.window_start = window_start
        self.window_end = window_end


class FillConversionError(FillCacheError):
    """Raised when a raw trade record cannot be converted into a Fill."""
