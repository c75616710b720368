"""
Exception hierarchy for Typox.

Every failure raised by the registry, dispatcher and loader derives from
TypoxError so front ends can convert them uniformly (the plugin boundary
into an "ERROR: ..." payload, the CLI into a message plus exit code).
"""

from typing import Optional


class TypoxError(Exception):
    """Base class for all Typox errors."""
    pass


class InvalidInputError(TypoxError):
    """Raised for malformed store names or undecodable query text."""
    pass


class StoreNotFoundError(TypoxError):
    """Raised when a store name or path does not exist."""

    def __init__(self, store: str, message: Optional[str] = None):
        self.store = store
        super().__init__(message or f"Store '{store}' not found")


class ParseFailureError(TypoxError):
    """Raised when graph data or query text cannot be parsed."""
    pass


class WrongResultShapeError(TypoxError):
    """Raised when a query's result shape does not match the entry point."""

    def __init__(self, expected, got):
        self.expected = expected
        self.got = got
        super().__init__(got.hint)


class NoResultsError(TypoxError):
    """Raised when a row-set query returns no solutions and empty results are an error."""

    def __init__(self, message: str = "No records found for the given query"):
        super().__init__(message)


class RemoteQueryError(TypoxError):
    """Raised on a non-success HTTP status or a malformed results document."""

    def __init__(self, endpoint: str, message: str, status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (HTTP {status_code} from {endpoint})"
        else:
            message = f"{message} ({endpoint})"
        super().__init__(message)


class MissingFileError(TypoxError):
    """Raised when a literal file path given to the loader does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File does not exist: {path}")


class NoFilesMatchedError(TypoxError):
    """Raised when a glob pattern expands to no graph-data files."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"No graph data files found matching pattern: {pattern}")


class ConfigValidationError(TypoxError):
    """Configuration validation error."""
    pass
