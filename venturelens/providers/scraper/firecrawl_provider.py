"""Firecrawl scraping API adapter.

Posts a URL to Firecrawl's ``/v1/scrape`` endpoint and asks for the page's
main content as markdown.  Firecrawl has returned the markdown both under
``data.markdown`` and at the top level over time; both shapes are read,
and a response with neither yields empty content rather than an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from venturelens.config.settings import Settings
from venturelens.interfaces.scraper_provider import IScraperProvider, ScrapedPage
from venturelens.utils.errors import ScrapeError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 60.0
_WAIT_FOR_MS = 2000


@dataclass(frozen=True)
class FirecrawlResult:
    """The fields of a Firecrawl scrape response the pipeline uses."""

    markdown: str
    title: str | None

    @classmethod
    def from_payload(cls, payload: Any) -> FirecrawlResult:
        if not isinstance(payload, dict):
            return cls(markdown="", title=None)

        data = payload.get("data")
        data = data if isinstance(data, dict) else {}

        markdown = data.get("markdown")
        if not isinstance(markdown, str):
            markdown = payload.get("markdown")
        if not isinstance(markdown, str):
            markdown = ""

        metadata = data.get("metadata")
        title = metadata.get("title") if isinstance(metadata, dict) else None
        if not isinstance(title, str) or not title.strip():
            title = None

        return cls(markdown=markdown, title=title)


class FirecrawlScraperProvider(IScraperProvider):
    """Scraper backed by the hosted Firecrawl API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.firecrawl_api_key
        self._endpoint = settings.firecrawl_base_url.rstrip("/") + "/v1/scrape"
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    # ------------------------------------------------------------------
    # IScraperProvider implementation
    # ------------------------------------------------------------------

    async def scrape(self, url: str) -> ScrapedPage:
        """Scrape *url* through Firecrawl and return its markdown content."""
        if not self._api_key:
            raise ScrapeError(
                message="FIRECRAWL_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )

        body = {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": True,
            "waitFor": _WAIT_FOR_MS,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(self._endpoint, json=body, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ScrapeError(
                message=f"Timeout scraping {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ScrapeError(
                message=f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ScrapeError(
                message=f"HTTP error scraping {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            logger.warning("firecrawl_invalid_json", url=url)
            payload = None

        result = FirecrawlResult.from_payload(payload)
        logger.info("firecrawl_scraped", url=url, content_length=len(result.markdown))
        return ScrapedPage(url=url, content=result.markdown, title=result.title)

    def get_provider_name(self) -> str:
        return "firecrawl"

    def is_available(self) -> bool:
        return bool(self._api_key)
