"""Abstract base class for scraping providers.

A scraper turns a URL into main-content text in a markup-light format
(markdown) plus page metadata.  Implementations may call a hosted scraping
API or fetch and parse the page locally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ScrapedPage:
    """Main content extracted from one web page.

    Attributes
    ----------
    url:
        The URL that was scraped.
    content:
        Main-content text, markdown or plain text.
    title:
        Page title when the provider reports one.
    """

    url: str
    content: str
    title: str | None = None


class IScraperProvider(ABC):
    """Contract for services that fetch readable content from web URLs."""

    @abstractmethod
    async def scrape(self, url: str) -> ScrapedPage:
        """Fetch *url* and return its main content.

        An empty ``content`` string means the page had nothing extractable;
        callers apply their own minimum-length threshold.

        Raises
        ------
        venturelens.utils.errors.ScrapeError
            If the request fails or the provider answers with an error status.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this scraper."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and usable."""
