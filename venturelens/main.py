"""VentureLens FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the API under ``/api/v1``.

Also provides :func:`build_components` for CLI or scripting usage outside
the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from venturelens import __version__
from venturelens.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from venturelens.api.routes import router as api_router
from venturelens.config.loader import load_config, load_crawl_sources
from venturelens.config.settings import Settings
from venturelens.interfaces.scraper_provider import IScraperProvider
from venturelens.providers.llm.openai_provider import OpenAICompatibleLLMProvider
from venturelens.providers.scraper.firecrawl_provider import FirecrawlScraperProvider
from venturelens.providers.scraper.web_scraper_provider import WebScraperProvider
from venturelens.providers.search.perplexity_provider import PerplexitySearchProvider
from venturelens.providers.storage.sqlite_knowledge_store import SQLiteKnowledgeStore
from venturelens.services.crawl_coordinator import CrawlCoordinator
from venturelens.services.funding_extractor import FundingExtractor
from venturelens.services.hybrid_retriever import HybridRetriever
from venturelens.services.ingestion.chunker import TextChunker
from venturelens.services.ingestion.ingestion_service import IngestionService
from venturelens.services.ingestion.keyword_extractor import KeywordExtractor
from venturelens.services.ingestion.text_extractor import TextExtractor
from venturelens.services.query_service import QueryService
from venturelens.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_scraper(app_settings: Settings, http_client: httpx.AsyncClient) -> IScraperProvider:
    """Use the scraping API when a key is configured, else fetch pages directly."""
    if app_settings.firecrawl_api_key:
        return FirecrawlScraperProvider(settings=app_settings, http_client=http_client)
    return WebScraperProvider(http_client=http_client)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The caller owns ``http_client`` and must close it.  The store still
    needs ``await store.initialize()`` before first use.
    """
    app_config = app_config if app_config is not None else {}

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0, follow_redirects=True)

    # -- Providers --
    llm = OpenAICompatibleLLMProvider(settings=app_settings, http_client=http_client)
    scraper = _build_scraper(app_settings, http_client)
    web_search = PerplexitySearchProvider(settings=app_settings, http_client=http_client)
    store = SQLiteKnowledgeStore(db_path=Path(app_settings.database_path))

    # -- Ingestion --
    keyword_extractor = KeywordExtractor(
        llm=llm,
        prefix_chars=app_settings.keyword_prefix_chars,
    )
    funding_extractor = FundingExtractor(
        crore_to_usd=app_settings.crore_to_usd,
        lakh_to_usd=app_settings.lakh_to_usd,
        max_records=app_settings.max_deal_records,
    )
    ingestion_service = IngestionService(
        store=store,
        text_extractor=TextExtractor(pdf_fallback_threshold=app_settings.pdf_fallback_threshold),
        document_chunker=TextChunker(
            max_chars=app_settings.document_chunk_size,
            overlap=app_settings.document_chunk_overlap,
            min_chars=app_settings.min_chunk_chars,
        ),
        web_chunker=TextChunker(
            max_chars=app_settings.web_chunk_size,
            min_chars=app_settings.min_chunk_chars,
        ),
        keyword_extractor=keyword_extractor,
        funding_extractor=funding_extractor,
        min_extracted_chars=app_settings.min_extracted_chars,
        keyword_tagged_chunk_limit=app_settings.keyword_tagged_chunk_limit,
    )

    # -- Querying --
    query_service = QueryService(
        store=store,
        llm=llm,
        keyword_extractor=keyword_extractor,
        retriever=HybridRetriever(top_n=app_settings.retrieval_top_n),
        web_search=web_search,
        pool_size=app_settings.retrieval_pool_size,
        history_turns=app_settings.history_turns,
    )

    # -- Crawling --
    crawl_coordinator = CrawlCoordinator(
        sources=load_crawl_sources(app_config),
        scraper=scraper,
        store=store,
        ingestion=ingestion_service,
        freshness_hours=app_settings.crawl_freshness_hours,
        delay_seconds=app_settings.crawl_delay_seconds,
        min_content_chars=app_settings.crawl_min_content_chars,
    )

    provider_registry = {
        "llm": llm.is_available(),
        "scraper": scraper.get_provider_name(),
        "web_search": web_search.is_available(),
        "storage": store.get_provider_name(),
    }

    return {
        "http_client": http_client,
        "settings": app_settings,
        "store": store,
        "llm": llm,
        "ingestion_service": ingestion_service,
        "query_service": query_service,
        "crawl_coordinator": crawl_coordinator,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["store"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        providers=components["provider_registry"],
        crawl_sources=len(components["crawl_coordinator"].sources),
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="VentureLens API",
        version=__version__,
        description=(
            "Upload startup-funding documents or crawl funding news, then ask "
            "questions answered from the knowledge base and the live web, "
            "with structured funding deals extracted along the way."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "venturelens.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
