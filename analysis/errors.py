"""
Query outcomes that are not a successful result.

The API layer turns InvalidArgument into a 400 and NoDataFound into a 404;
anything else that escapes a query is an internal error.
"""


class QueryError(Exception):
    """Base class — carries a short error title and a human-readable message."""

    def __init__(self, error: str, message: str):
        super().__init__(message)
        self.error = error
        self.message = message


class InvalidArgument(QueryError, ValueError):
    """A request parameter is missing or has a value we don't accept."""


class NoDataFound(QueryError, LookupError):
    """The query was valid but matched no records."""

    def __init__(self, message: str):
        super().__init__("No data found", message)
