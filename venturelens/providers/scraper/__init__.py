"""Scraper provider adapters.

    - FirecrawlScraperProvider -- hosted Firecrawl API (needs FIRECRAWL_API_KEY)
    - WebScraperProvider       -- keyless httpx + trafilatura fallback

main.py picks Firecrawl when a key is configured and the local scraper
otherwise.
"""

from venturelens.providers.scraper.firecrawl_provider import FirecrawlScraperProvider
from venturelens.providers.scraper.web_scraper_provider import WebScraperProvider

__all__ = ["FirecrawlScraperProvider", "WebScraperProvider"]
