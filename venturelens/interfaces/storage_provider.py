"""Abstract base class for the knowledge store.

The store persists documents, data sources, chunks, deal records, and raw
uploaded bytes.  It is the only shared mutable state between pipeline
invocations; the pipeline relies on its native upsert / insert-or-ignore
semantics instead of locking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from venturelens.models.deals import DealRecord
from venturelens.models.knowledge import (
    DataSource,
    Document,
    DocumentStatus,
    KnowledgeChunk,
    SourceType,
)


class IKnowledgeStore(ABC):
    """Contract for persistence of the knowledge base."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / buckets if they do not exist."""

    # -- Blobs ---------------------------------------------------------

    @abstractmethod
    async def put_blob(self, path: str, data: bytes) -> None:
        """Store raw file bytes under *path*, replacing any previous value."""

    @abstractmethod
    async def get_blob(self, path: str) -> bytes:
        """Return the bytes stored under *path*.

        Raises
        ------
        venturelens.utils.errors.StorageError
            If nothing is stored under *path*.
        """

    # -- Documents -----------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert a new document record."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document or ``None`` when it does not exist."""

    @abstractmethod
    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        chunk_count: int | None = None,
    ) -> None:
        """Set the lifecycle status (and optionally the chunk count) of a document."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document with its data source, chunks, and blob.

        Returns ``False`` when the document did not exist.
        """

    # -- Data sources and chunks ---------------------------------------

    @abstractmethod
    async def upsert_data_source(
        self,
        url: str,
        title: str | None,
        source_type: SourceType,
        content: str | None,
        metadata: dict[str, Any],
        document_id: str | None = None,
    ) -> DataSource:
        """Insert a data source, or update the existing one with the same *url*."""

    @abstractmethod
    async def get_data_source_by_url(self, url: str) -> DataSource | None:
        """Return the data source for *url*, or ``None``."""

    @abstractmethod
    async def replace_chunks(self, source_id: str, chunks: Sequence[KnowledgeChunk]) -> int:
        """Delete every chunk of *source_id* and insert *chunks* in its place."""

    @abstractmethod
    async def list_chunks(
        self,
        limit: int,
        documents_only: bool = False,
    ) -> list[KnowledgeChunk]:
        """Return up to *limit* chunks as the retrieval candidate pool.

        When *documents_only* is set, only chunks of uploaded documents are
        returned.
        """

    # -- Deals ---------------------------------------------------------

    @abstractmethod
    async def insert_deals(self, deals: Sequence[DealRecord]) -> int:
        """Insert deal records, silently ignoring natural-key duplicates.

        Returns the number of rows actually inserted.
        """

    @abstractmethod
    async def list_deals(self, limit: int = 100) -> list[DealRecord]:
        """Return the most recently extracted deal records."""
