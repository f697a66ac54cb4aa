"""Orchestrator for document and web-content ingestion.

Pipeline stages: **extract -> chunk -> tag -> store**, with funding-deal
extraction running off the same text.

Uploaded documents follow a one-way lifecycle::

    pending -> processing -> ready
                          -> error

:meth:`IngestionService.register_upload` stores the raw bytes and creates the
``pending`` record; :meth:`IngestionService.process_document` drives the rest.
A document that ends in ``error`` is never retried in place; uploading the
file again starts a new lifecycle.

Crawled or pushed web content skips the lifecycle and goes straight through
:meth:`IngestionService.ingest_web_content`, which upserts its data source by
URL so a refresh replaces the old chunks instead of adding to them.

All collaborators are injected, so tests can substitute any of them.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog

from venturelens.models.knowledge import (
    Document,
    DocumentStatus,
    IngestionResult,
    KnowledgeChunk,
    SourceType,
    can_transition,
)
from venturelens.services.ingestion.chunker import ChunkMode
from venturelens.services.ingestion.text_extractor import infer_extension
from venturelens.utils.errors import StorageError, VentureLensError

if TYPE_CHECKING:
    from venturelens.interfaces.storage_provider import IKnowledgeStore
    from venturelens.services.funding_extractor import FundingExtractor
    from venturelens.services.ingestion.chunker import TextChunker
    from venturelens.services.ingestion.keyword_extractor import KeywordExtractor
    from venturelens.services.ingestion.text_extractor import TextExtractor

logger = structlog.get_logger(logger_name=__name__)

_SOURCE_TYPES: dict[str, SourceType] = {
    "pdf": SourceType.PDF,
    "xlsx": SourceType.TABLE,
    "xls": SourceType.TABLE,
    "csv": SourceType.TABLE,
    "docx": SourceType.REPORT,
    "doc": SourceType.REPORT,
}


def source_type_for_extension(extension: str) -> SourceType:
    """Map a file extension onto the data-source category shown in the UI."""
    return _SOURCE_TYPES.get(extension.lower(), SourceType.WEB)


class IngestionService:
    """Turns uploaded files and crawled pages into stored chunks and deals.

    Parameters
    ----------
    store:
        Knowledge store for blobs, documents, sources, chunks and deals.
    text_extractor:
        Converts uploaded bytes into plain text.
    document_chunker:
        Chunker used in fixed-window mode for uploaded documents.
    web_chunker:
        Chunker used in paragraph mode for web content.
    keyword_extractor:
        Tags the leading chunks of each source with keywords.
    funding_extractor:
        Finds funding deals in the extracted text.
    min_extracted_chars:
        Extracted text shorter than this fails the document.
    keyword_tagged_chunk_limit:
        Only this many leading chunks per source are keyword-tagged.
    """

    def __init__(
        self,
        store: IKnowledgeStore,
        text_extractor: TextExtractor,
        document_chunker: TextChunker,
        web_chunker: TextChunker,
        keyword_extractor: KeywordExtractor,
        funding_extractor: FundingExtractor,
        min_extracted_chars: int = 10,
        keyword_tagged_chunk_limit: int = 20,
    ) -> None:
        self._store = store
        self._text_extractor = text_extractor
        self._document_chunker = document_chunker
        self._web_chunker = web_chunker
        self._keyword_extractor = keyword_extractor
        self._funding_extractor = funding_extractor
        self._min_extracted_chars = min_extracted_chars
        self._keyword_limit = keyword_tagged_chunk_limit

    # ------------------------------------------------------------------
    # Uploaded documents
    # ------------------------------------------------------------------

    async def register_upload(
        self,
        data: bytes,
        file_name: str,
        media_type: str | None = None,
        category: str | None = None,
    ) -> Document:
        """Store raw upload bytes and create a ``pending`` document record."""
        document_id = str(uuid.uuid4())
        file_path = f"documents/{document_id}/{file_name}"

        await self._store.put_blob(file_path, data)
        document = await self._store.create_document(
            Document(
                document_id=document_id,
                file_name=file_name,
                file_path=file_path,
                media_type=media_type,
                file_size=len(data),
                category=category,
            )
        )
        logger.info(
            "document_registered",
            document_id=document_id,
            file_name=file_name,
            file_size=len(data),
        )
        return document

    async def process_document(self, document_id: str) -> IngestionResult:
        """Run extraction, chunking, tagging and persistence for one document.

        Returns
        -------
        IngestionResult
            ``status`` is ``ready`` on success or ``error`` when extraction
            produced too little text or any later step failed; the document
            never stays in ``processing``.

        Raises
        ------
        StorageError
            If the document does not exist.
        ValueError
            If the document has already left the ``pending`` state.
        """
        document = await self._store.get_document(document_id)
        if document is None:
            raise StorageError(message=f"Unknown document {document_id}")
        if not can_transition(document.status, DocumentStatus.PROCESSING):
            raise ValueError(
                f"Document {document_id} is {document.status.value}; "
                "upload the file again to reprocess it"
            )

        t0 = time.perf_counter()
        await self._store.update_document_status(document_id, DocumentStatus.PROCESSING)
        logger.info("document_processing_started", document_id=document_id)

        try:
            result = await self._process(document)
        except VentureLensError as exc:
            logger.error("document_processing_failed", document_id=document_id, error=str(exc))
            return await self._mark_failed(document, exc.message)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "document_processing_failed",
                document_id=document_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return await self._mark_failed(document, f"Processing failed: {type(exc).__name__}")

        if result.status is DocumentStatus.ERROR:
            await self._store.update_document_status(document_id, DocumentStatus.ERROR)
        else:
            await self._store.update_document_status(
                document_id, DocumentStatus.READY, chunk_count=result.chunks_created
            )

        logger.info(
            "document_processing_complete",
            document_id=document_id,
            status=result.status.value,
            chunks=result.chunks_created,
            deals=result.deals_extracted,
            elapsed_s=round(time.perf_counter() - t0, 2),
        )
        return result

    async def _mark_failed(self, document: Document, message: str) -> IngestionResult:
        await self._store.update_document_status(document.document_id, DocumentStatus.ERROR)
        return IngestionResult(
            document_id=document.document_id,
            status=DocumentStatus.ERROR,
            file_type=document.extension,
            error=message,
        )

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document together with its chunks and stored bytes."""
        deleted = await self._store.delete_document(document_id)
        logger.info("document_delete_requested", document_id=document_id, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Web content
    # ------------------------------------------------------------------

    async def ingest_web_content(
        self,
        url: str,
        content: str,
        title: str | None = None,
        category: str = "funding_news",
    ) -> IngestionResult:
        """Store crawled or pushed page content, replacing any previous version.

        Parameters
        ----------
        url:
            Natural key of the data source.
        content:
            Page text, typically markdown.
        title:
            Page title for citations.
        category:
            Content category recorded on the source and its chunks.
        """
        source = await self._store.upsert_data_source(
            url=url,
            title=title,
            source_type=SourceType.WEB,
            content=content,
            metadata={"category": category},
        )

        texts = self._web_chunker.chunk(content, ChunkMode.PARAGRAPH)
        chunks = _build_chunks(
            source.source_id,
            texts,
            {"source_url": url, "title": title, "category": category},
        )
        chunks = await self._keyword_extractor.tag_chunks(chunks, limit=self._keyword_limit)
        stored = await self._store.replace_chunks(source.source_id, chunks)

        deals = self._funding_extractor.extract(content, source_id=source.source_id)
        inserted = await self._store.insert_deals(deals) if deals else 0

        logger.info(
            "web_content_ingested",
            url=url,
            source_id=source.source_id,
            chunks=stored,
            deals_found=len(deals),
            deals_inserted=inserted,
        )
        return IngestionResult(
            source_id=source.source_id,
            status=DocumentStatus.READY,
            chunks_created=stored,
            keywords_tagged=_count_tagged(chunks),
            deals_extracted=len(deals),
            content_length=len(content),
            file_type="web",
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _process(self, document: Document) -> IngestionResult:
        data = await self._store.get_blob(document.file_path)
        extension = infer_extension(document.file_path, document.media_type)
        text = self._text_extractor.extract(data, document.file_path, document.media_type)

        if len(text.strip()) < self._min_extracted_chars:
            logger.warning(
                "document_text_insufficient",
                document_id=document.document_id,
                text_length=len(text.strip()),
            )
            return IngestionResult(
                document_id=document.document_id,
                status=DocumentStatus.ERROR,
                content_length=len(text),
                file_type=extension,
                error="Could not extract sufficient text from document",
            )

        texts = self._document_chunker.chunk(text, ChunkMode.WINDOW)
        source = await self._store.upsert_data_source(
            url=document.file_path,
            title=document.file_name,
            source_type=source_type_for_extension(extension),
            content=text,
            metadata={
                "documentId": document.document_id,
                "chunksCount": len(texts),
                "fileType": extension,
                "originalLength": len(text),
            },
            document_id=document.document_id,
        )

        chunks = _build_chunks(
            source.source_id,
            texts,
            {"documentId": document.document_id, "fileName": document.file_name},
        )
        chunks = await self._keyword_extractor.tag_chunks(chunks, limit=self._keyword_limit)
        stored = await self._store.replace_chunks(source.source_id, chunks)

        deals = self._funding_extractor.extract(text, source_id=source.source_id)
        if deals:
            await self._store.insert_deals(deals)

        return IngestionResult(
            source_id=source.source_id,
            document_id=document.document_id,
            status=DocumentStatus.READY,
            chunks_created=stored,
            keywords_tagged=_count_tagged(chunks),
            deals_extracted=len(deals),
            content_length=len(text),
            file_type=extension,
        )


def _build_chunks(
    source_id: str,
    texts: list[str],
    metadata: dict[str, object],
) -> list[KnowledgeChunk]:
    return [
        KnowledgeChunk(
            chunk_id=str(uuid.uuid4()),
            source_id=source_id,
            chunk_index=index,
            text=text,
            metadata=dict(metadata),
        )
        for index, text in enumerate(texts)
    ]


def _count_tagged(chunks: list[KnowledgeChunk]) -> int:
    return sum(1 for c in chunks if c.keywords is not None)
