"""Exception hierarchy for the syndication engine."""

from typing import Optional


class SyndicationError(Exception):
    """Base class for engine errors."""


class TransportError(SyndicationError):
    """A transport call failed (network, remote rejection, bad response)."""

    def __init__(self, message: str, code: str = "transport-error", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        return f"[{self.code}] {self.args[0]}"


class FeedFetchError(TransportError):
    """The remote document could not be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, code="feed-fetch-failure", status_code=status_code)


class FeedParseError(TransportError):
    """The remote document could not be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="feed-parse-failure")


class FeedMappingError(TransportError):
    """Mapping rules could not be applied to a parsed document."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="feed-mapping-failure")


class StoreError(SyndicationError):
    """The local store rejected an operation."""
