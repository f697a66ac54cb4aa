"""VentureLens domain models.

Organized by concern:
    - knowledge.py -- documents, data sources, chunks, retrieval hits
    - deals.py     -- structured funding-deal records
    - query.py     -- conversation turns, requests, citations, answers
    - crawl.py     -- crawl sources and per-pass reports
"""

from __future__ import annotations

from venturelens.models.crawl import CrawlReport, CrawlSource, CrawlSourceResult, CrawlStatus
from venturelens.models.deals import STOPWORD_NAMES, DealRecord
from venturelens.models.knowledge import (
    DataSource,
    Document,
    DocumentStatus,
    IngestionResult,
    KnowledgeChunk,
    ScoredChunk,
    SourceType,
    can_transition,
)
from venturelens.models.query import (
    ConversationTurn,
    QueryAnswer,
    QueryRequest,
    RetrievalMode,
    SourceCitation,
    StreamDelta,
    WebSearchAnswer,
)

__all__ = [
    "STOPWORD_NAMES",
    "ConversationTurn",
    "CrawlReport",
    "CrawlSource",
    "CrawlSourceResult",
    "CrawlStatus",
    "DataSource",
    "DealRecord",
    "Document",
    "DocumentStatus",
    "IngestionResult",
    "KnowledgeChunk",
    "QueryAnswer",
    "QueryRequest",
    "RetrievalMode",
    "ScoredChunk",
    "SourceCitation",
    "SourceType",
    "StreamDelta",
    "WebSearchAnswer",
    "can_transition",
]
