"""Keyless scraper using httpx and trafilatura.

Fetches raw HTML and extracts the main article text with trafilatura's
boilerplate-removal engine.  Used for crawling when no Firecrawl key is
configured.
"""

from __future__ import annotations

import httpx
import structlog
import trafilatura

from venturelens.interfaces.scraper_provider import IScraperProvider, ScrapedPage
from venturelens.utils.errors import ScrapeError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; VentureLens/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class WebScraperProvider(IScraperProvider):
    """Main-content extraction backed by httpx + trafilatura."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # IScraperProvider implementation
    # ------------------------------------------------------------------

    async def scrape(self, url: str) -> ScrapedPage:
        """Fetch *url* and extract readable text via trafilatura."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ScrapeError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ScrapeError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ScrapeError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        html = response.text
        text = trafilatura.extract(
            html,
            include_comments=False,
            include_tables=True,
            output_format="markdown",
        )
        if not text:
            logger.warning("trafilatura_extraction_empty", url=url)
            return ScrapedPage(url=url, content="", title=None)

        metadata = trafilatura.extract_metadata(html)
        title = (metadata.title or None) if metadata is not None else None

        logger.info("page_scraped", url=url, title=title, text_length=len(text))
        return ScrapedPage(url=url, content=text, title=title)

    def get_provider_name(self) -> str:
        return "web_scraper"

    def is_available(self) -> bool:
        """Always available: no credentials required."""
        return True
