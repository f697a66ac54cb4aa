"""Utility modules for VentureLens.

- **errors** -- Domain-specific exception hierarchy rooted at
  VentureLensError, plus the user-facing failure categories for queries.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from venturelens.utils.errors import (
    ConfigurationError,
    ExtractionError,
    LLMError,
    QueryErrorCategory,
    QuotaExhaustedError,
    RateLimitError,
    ScrapeError,
    StorageError,
    VentureLensError,
    WebSearchError,
    categorize_error,
)
from venturelens.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ExtractionError",
    "LLMError",
    "QueryErrorCategory",
    "QuotaExhaustedError",
    "RateLimitError",
    "ScrapeError",
    "StorageError",
    "VentureLensError",
    "WebSearchError",
    "categorize_error",
    "configure_logging",
    "get_logger",
]
