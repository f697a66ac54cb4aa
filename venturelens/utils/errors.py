"""Custom exception hierarchy for VentureLens.

All application exceptions inherit from :class:`VentureLensError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai-compatible", "firecrawl", "sqlite") caused
the failure.

The hierarchy is organized by pipeline concern:

    VentureLensError  (base -- catch-all for any VentureLens error)
    +-- ExtractionError          (document text could not be recovered)
    +-- LLMError                 (any completion API call failure)
    |   +-- RateLimitError       (provider answered HTTP 429)
    |   +-- QuotaExhaustedError  (provider answered HTTP 402)
    +-- ScrapeError              (scraping API failure)
    +-- WebSearchError           (web search API failure)
    +-- StorageError             (knowledge store read/write failure)
    +-- ConfigurationError       (startup / missing config)

Query callers map these onto three user-facing categories with
:func:`categorize_error`.
"""

from __future__ import annotations

from enum import Enum


class VentureLensError(Exception):
    """Base exception for all VentureLens errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[firecrawl] HTTP 500``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(VentureLensError):
    """Raised when a document yields too little text to be chunked."""

    def __init__(
        self,
        message: str = "Could not extract sufficient text from document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service errors
# ---------------------------------------------------------------------------

class LLMError(VentureLensError):
    """Raised when a completion API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class RateLimitError(LLMError):
    """Raised when the completion provider rejects a call with HTTP 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again in a moment.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=429)


class QuotaExhaustedError(LLMError):
    """Raised when the completion provider rejects a call with HTTP 402."""

    def __init__(
        self,
        message: str = "AI credits exhausted. Please add credits to continue.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status_code=402)


class ScrapeError(VentureLensError):
    """Raised when the scraping API cannot fetch a page."""

    def __init__(
        self,
        message: str = "Scraping request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class WebSearchError(VentureLensError):
    """Raised when the web search API call fails."""

    def __init__(
        self,
        message: str = "Web search failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class StorageError(VentureLensError):
    """Raised when the knowledge store rejects a read or write."""

    def __init__(
        self,
        message: str = "Knowledge store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(VentureLensError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# User-facing failure categories
# ---------------------------------------------------------------------------

class QueryErrorCategory(str, Enum):  # noqa: UP042
    """User-facing category for a failed query."""

    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    FAILED = "failed"


def categorize_error(exc: BaseException) -> QueryErrorCategory:
    """Map *exc* onto the category shown to the user.

    Only provider status 429 and 402 get their own category; everything
    else is a generic failure.
    """
    status = getattr(exc, "status_code", None)
    if isinstance(exc, RateLimitError) or status == 429:
        return QueryErrorCategory.RATE_LIMITED
    if isinstance(exc, QuotaExhaustedError) or status == 402:
        return QueryErrorCategory.QUOTA_EXHAUSTED
    return QueryErrorCategory.FAILED
