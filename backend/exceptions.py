"""Exception types for the content search service."""
from typing import Optional


class ContentSearchError(Exception):
    """Base exception for the content search service."""


class ContentValidationError(ContentSearchError, ValueError):
    """A content document is missing a required field or has a malformed value."""


class ProviderError(ContentSearchError):
    """
    Network, auth or quota failure from the embedding backend.

    Retryable: the adapter never retries, the generation layer does.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class CountMismatchError(ContentSearchError):
    """Provider returned a different number of vectors than chunks submitted."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding count mismatch: expected {expected}, got {actual}")
