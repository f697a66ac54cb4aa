"""Periodic crawl of configured funding-news sources.

One pass visits every configured :class:`~venturelens.models.crawl.CrawlSource`
in order:

1. **Recency guard** -- a source whose data was refreshed within the
   freshness window is reported ``skipped`` without any network call.
2. **Scrape** -- the page is fetched through the injected scraper.  Content
   below the minimum length is reported ``skipped``.
3. **Ingest** -- the content goes through
   :meth:`IngestionService.ingest_web_content`, which replaces the source's
   chunks and records any funding deals.

Sources are processed strictly one after another with a fixed courtesy
delay after each fetch.  A failure is recorded as ``error`` for that source
and the pass continues, so a report always covers every source.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

from venturelens.models.crawl import CrawlReport, CrawlSource, CrawlSourceResult, CrawlStatus

if TYPE_CHECKING:
    from venturelens.interfaces.scraper_provider import IScraperProvider
    from venturelens.interfaces.storage_provider import IKnowledgeStore
    from venturelens.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)

REASON_RECENT = "Recently updated"
REASON_INSUFFICIENT = "Insufficient content"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CrawlCoordinator:
    """Runs fault-isolated, sequential crawl passes over a fixed source list.

    Parameters
    ----------
    sources:
        Ordered source list, injected from configuration.
    scraper:
        Fetches page content.
    store:
        Read for each source's last refresh time.
    ingestion:
        Stores fetched content as chunks and deals.
    freshness_hours:
        Sources refreshed more recently than this are skipped.
    delay_seconds:
        Pause after each fetch before moving to the next source.
    min_content_chars:
        Fetched content shorter than this is skipped.
    sleep, clock:
        Injection points for tests.
    """

    def __init__(
        self,
        sources: Sequence[CrawlSource],
        scraper: IScraperProvider,
        store: IKnowledgeStore,
        ingestion: IngestionService,
        freshness_hours: float = 12.0,
        delay_seconds: float = 1.0,
        min_content_chars: int = 100,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sources = tuple(sources)
        self._scraper = scraper
        self._store = store
        self._ingestion = ingestion
        self._freshness = timedelta(hours=freshness_hours)
        self._delay_seconds = delay_seconds
        self._min_content_chars = min_content_chars
        self._sleep = sleep
        self._clock = clock

    @property
    def sources(self) -> tuple[CrawlSource, ...]:
        return self._sources

    async def run(self) -> CrawlReport:
        """Crawl every configured source once and return the pass report."""
        started_at = self._clock()
        t0 = time.perf_counter()
        logger.info("crawl_pass_started", sources=len(self._sources))

        results: list[CrawlSourceResult] = []
        for index, source in enumerate(self._sources):
            result, fetched = await self._crawl_source(source)
            results.append(result)
            if fetched and index < len(self._sources) - 1 and self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)

        report = CrawlReport(
            started_at=started_at,
            duration_seconds=time.perf_counter() - t0,
            results=results,
        )
        logger.info(
            "crawl_pass_complete",
            processed=report.processed,
            skipped=report.skipped,
            errors=report.errors,
            duration_s=round(report.duration_seconds, 2),
        )
        return report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _crawl_source(self, source: CrawlSource) -> tuple[CrawlSourceResult, bool]:
        """Crawl one source.  The flag tells whether a fetch was attempted."""
        fetched = False
        try:
            existing = await self._store.get_data_source_by_url(source.url)
            if existing is not None and self._clock() - existing.updated_at < self._freshness:
                logger.info("crawl_source_skipped", source=source.name, reason=REASON_RECENT)
                return self._result(source, CrawlStatus.SKIPPED, reason=REASON_RECENT), fetched

            fetched = True
            page = await self._scraper.scrape(source.url)
            content = page.content or ""
            if len(content) < self._min_content_chars:
                logger.info(
                    "crawl_source_skipped",
                    source=source.name,
                    reason=REASON_INSUFFICIENT,
                    content_length=len(content),
                )
                return (
                    self._result(
                        source,
                        CrawlStatus.SKIPPED,
                        reason=REASON_INSUFFICIENT,
                        content_length=len(content),
                    ),
                    fetched,
                )

            ingested = await self._ingestion.ingest_web_content(
                url=source.url,
                content=content,
                title=page.title or source.name,
                category=source.category,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("crawl_source_failed", source=source.name, url=source.url, error=str(exc))
            return self._result(source, CrawlStatus.ERROR, error=str(exc)), fetched

        logger.info(
            "crawl_source_complete",
            source=source.name,
            chunks=ingested.chunks_created,
            funding_records=ingested.deals_extracted,
        )
        return (
            self._result(
                source,
                CrawlStatus.SUCCESS,
                content_length=ingested.content_length,
                chunks=ingested.chunks_created,
                funding_records=ingested.deals_extracted,
            ),
            fetched,
        )

    @staticmethod
    def _result(source: CrawlSource, status: CrawlStatus, **fields: object) -> CrawlSourceResult:
        return CrawlSourceResult(source=source.name, url=source.url, status=status, **fields)
