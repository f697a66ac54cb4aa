"""Knowledge-base data models: documents, chunks, and ranked retrieval hits.

Defines Pydantic v2 models for the unstructured side of the system.  A
:class:`Document` is a user-uploaded file that moves through a one-way
lifecycle; a :class:`DataSource` is any origin of text (uploaded file or
crawled page) that owns a set of :class:`KnowledgeChunk` rows.  All models
are frozen; state transitions produce new instances via ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Document lifecycle
# ---------------------------------------------------------------------------
class DocumentStatus(str, Enum):  # noqa: UP042
    """Lifecycle of an uploaded document.

    PENDING -> PROCESSING -> READY | ERROR.  A failed document is never
    retried in place; a new upload starts a fresh lifecycle.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


# Legal forward transitions.  READY and ERROR are terminal.
_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.PROCESSING, DocumentStatus.ERROR}),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.READY, DocumentStatus.ERROR}),
    DocumentStatus.READY: frozenset(),
    DocumentStatus.ERROR: frozenset(),
}


def can_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    """Return ``True`` if a document may move from *current* to *target*."""
    return target in _TRANSITIONS[current]


class SourceType(str, Enum):  # noqa: UP042
    """Category of a data source, derived from its origin."""

    PDF = "pdf"
    WEB = "web"
    TABLE = "table"
    REPORT = "report"
    API = "api"


class Document(BaseModel):
    """A user-supplied file tracked through ingestion."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Opaque identifier of the document.")
    file_name: str = Field(description="Original uploaded file name.")
    file_path: str = Field(description="Blob-store key holding the raw bytes.")
    media_type: str | None = Field(default=None, description="Declared media type, if any.")
    file_size: int = Field(default=0, ge=0, description="Raw byte length.")
    category: str | None = Field(default=None, description="User-chosen category label.")
    status: DocumentStatus = DocumentStatus.PENDING
    chunk_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def extension(self) -> str:
        """Lower-cased extension of the original file name, without the dot."""
        name = self.file_path or self.file_name
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[-1].lower()


class DataSource(BaseModel):
    """An origin of ingested text: an uploaded file or a crawled URL.

    ``url`` is the natural key for upserts, so re-crawling the same page
    refreshes one row instead of accumulating duplicates.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    url: str
    title: str | None = None
    source_type: SourceType = SourceType.WEB
    content: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    document_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Chunks
# ---------------------------------------------------------------------------
class KnowledgeChunk(BaseModel):
    """A bounded-size excerpt of a source's extracted text; the unit of retrieval.

    ``keywords`` is ``None`` when tagging was skipped or failed, which is
    different from an empty tag list returned by a successful call.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier for this chunk.")
    source_id: str = Field(description="Data source that owns this chunk.")
    chunk_index: int = Field(ge=0, description="0-based reading order within the source.")
    text: str = Field(min_length=1, description="The chunk's textual content.")
    keywords: list[str] | None = Field(
        default=None,
        description="Lower-cased keywords derived at ingestion time.",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provenance: fileName / documentId or source_url / title / category.",
    )

    @property
    def display_name(self) -> str:
        """Short human-readable name of the chunk's origin for citations."""
        name = (
            self.metadata.get("fileName")
            or self.metadata.get("title")
            or self.metadata.get("source_url")
            or self.source_id
        )
        return str(name).rsplit("/", 1)[-1] or str(name)

    @property
    def category(self) -> str:
        """``document`` for uploaded files, otherwise the crawl category or ``web``."""
        if self.metadata.get("documentId"):
            return "document"
        return str(self.metadata.get("category") or "web")


class ScoredChunk(BaseModel):
    """A chunk returned by the hybrid retriever with its relevance score."""

    model_config = ConfigDict(frozen=True)

    chunk: KnowledgeChunk
    score: float = Field(gt=0.0)


class IngestionResult(BaseModel):
    """Summary of one document or web-content ingestion run."""

    model_config = ConfigDict(frozen=True)

    source_id: str | None = None
    document_id: str | None = None
    status: DocumentStatus = DocumentStatus.READY
    chunks_created: int = Field(default=0, ge=0)
    keywords_tagged: int = Field(default=0, ge=0)
    deals_extracted: int = Field(default=0, ge=0)
    content_length: int = Field(default=0, ge=0)
    file_type: str | None = None
    error: str | None = None
