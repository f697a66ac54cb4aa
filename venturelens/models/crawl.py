"""Crawl configuration and per-pass reporting models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CrawlSource(BaseModel):
    """A configured external feed polled by the crawl coordinator."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    category: str = "funding_news"


class CrawlStatus(str, Enum):  # noqa: UP042
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


class CrawlSourceResult(BaseModel):
    """Outcome of one source within a crawl pass."""

    model_config = ConfigDict(frozen=True)

    source: str
    url: str
    status: CrawlStatus
    reason: str | None = None
    error: str | None = None
    content_length: int = Field(default=0, ge=0)
    chunks: int = Field(default=0, ge=0)
    funding_records: int = Field(default=0, ge=0)


class CrawlReport(BaseModel):
    """Summary of a full crawl pass over every configured source."""

    model_config = ConfigDict(frozen=True)

    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = Field(default=0.0, ge=0.0)
    results: list[CrawlSourceResult] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if r.status is CrawlStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status is CrawlStatus.SKIPPED)

    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if r.status is CrawlStatus.ERROR)

    def summary(self) -> dict[str, object]:
        """Return the pass summary shape consumed by the UI layer."""
        return {
            "success": True,
            "timestamp": self.started_at.isoformat(),
            "duration": f"{self.duration_seconds:.2f}s",
            "sourcesProcessed": self.processed,
            "sourcesSkipped": self.skipped,
            "errorCount": self.errors,
            "results": [r.model_dump(mode="json", exclude_none=True) for r in self.results],
            "errorDetails": [
                {"source": r.source, "error": r.error}
                for r in self.results
                if r.status is CrawlStatus.ERROR
            ],
        }
