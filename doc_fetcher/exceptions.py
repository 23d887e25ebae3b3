"""Custom exceptions for doc_fetcher."""


class DocFetchError(Exception):
    """Base exception for document fetching errors."""
    pass


class IdentifierNotFound(DocFetchError):
    """Exception raised when a URL carries no recognisable paper identifier."""
    pass


class FetchFailed(DocFetchError):
    """Exception raised when a remote resource cannot be retrieved."""
    pass


class ParseFailed(DocFetchError):
    """Exception raised when fetched content does not have the expected shape."""
    pass


class WriteFailed(DocFetchError):
    """Exception raised when an artifact cannot be written to disk."""
    pass


class UnsupportedFormat(DocFetchError):
    """Exception raised for an extraction format the engine does not implement."""
    pass
