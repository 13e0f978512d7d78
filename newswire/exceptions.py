class NewswireError(Exception):
    """Base class for newswire errors."""


class FeedFetchError(NewswireError):
    """Raised when a single feed cannot be fetched or parsed."""


class FeedHTTPError(FeedFetchError):
    """Raised when a feed responds with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class FeedParseError(FeedFetchError):
    """Raised when a feed body is not a usable RSS/RDF/Atom document."""
