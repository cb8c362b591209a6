"""Contracts for the external search and completion providers.

Both providers are treated as unreliable. Callers bound every call with a
timeout and fall back to local logic on any ``PROVIDER_FAILURES`` error.
"""

from dataclasses import dataclass, field
from typing import Protocol

import httpx


class ProviderError(Exception):
    """Raised when an external provider returns an unusable response."""

    def __init__(self, message: str, retryable: bool = False):
        """
        Initialize provider error.

        Args:
            message: Error description
            retryable: Whether this error can be retried (HTTP 429 rate limits,
                       HTTP 5xx server errors)
        """
        super().__init__(message)
        self.retryable = retryable


# Errors that mean "provider unavailable": recovered locally, never propagated.
PROVIDER_FAILURES: tuple[type[BaseException], ...] = (
    ProviderError,
    httpx.HTTPError,
    TimeoutError,
    ValueError,
    KeyError,
)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


@dataclass(frozen=True)
class SearchResult:
    title: str = ""
    url: str = ""
    content: str = ""


@dataclass(frozen=True)
class SearchResponse:
    answer: str | None = None
    results: list[SearchResult] = field(default_factory=list)


class SearchProvider(Protocol):
    async def search(self, query: str) -> SearchResponse: ...


class CompletionProvider(Protocol):
    async def complete(self, prompt: str) -> str: ...
