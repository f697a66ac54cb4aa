"""FastAPI routes for the VentureLens pipeline.

Routes only translate HTTP to service calls; services are resolved from
``app.state`` (populated by ``main.py``) through ``Depends`` helpers.

Endpoint                                   Method  Description
---------------------------------------------------------------------------
/api/v1/documents                          POST    Upload a file (and process it)
/api/v1/documents/{document_id}            GET     Document status and chunk count
/api/v1/documents/{document_id}/process    POST    Process a pending document
/api/v1/documents/{document_id}            DELETE  Delete document and its chunks
/api/v1/ingest                             POST    Ingest pushed web content
/api/v1/query                              POST    Answer a question (SSE stream)
/api/v1/web-search                         POST    Answer from live web results
/api/v1/crawl                              POST    Run one crawl pass now
/api/v1/deals                              GET     Recently extracted deals
/api/v1/health                             GET     Health check + provider status
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from venturelens import __version__
from venturelens.api.schemas import (
    DeleteResponse,
    HealthResponse,
    IngestRequest,
    WebSearchRequest,
)
from venturelens.interfaces.storage_provider import IKnowledgeStore
from venturelens.models.deals import DealRecord
from venturelens.models.knowledge import Document, DocumentStatus, IngestionResult
from venturelens.models.query import QueryAnswer, QueryRequest, StreamDelta, WebSearchAnswer
from venturelens.services.crawl_coordinator import CrawlCoordinator
from venturelens.services.ingestion.ingestion_service import IngestionService
from venturelens.services.ingestion.text_extractor import SUPPORTED_EXTENSIONS, infer_extension
from venturelens.services.query_service import QueryService
from venturelens.utils.errors import VentureLensError, categorize_error
from venturelens.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def _get_crawl_coordinator(request: Request) -> CrawlCoordinator:
    return request.app.state.crawl_coordinator


def _get_store(request: Request) -> IKnowledgeStore:
    return request.app.state.store


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
QueryDep = Annotated[QueryService, Depends(_get_query_service)]
CrawlDep = Annotated[CrawlCoordinator, Depends(_get_crawl_coordinator)]
StoreDep = Annotated[IKnowledgeStore, Depends(_get_store)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post("/documents", response_model=IngestionResult, summary="Upload a document")
async def upload_document(
    file: UploadFile,
    ingestion: IngestionDep,
    category: Annotated[str | None, Form()] = None,
    process: Annotated[bool, Query()] = True,
) -> IngestionResult:
    """Store an uploaded file and, unless ``process=false``, ingest it right away."""
    file_name = file.filename or "upload"
    extension = infer_extension(file_name, file.content_type)
    if extension and extension not in SUPPORTED_EXTENSIONS:
        _logger.info("upload_unrecognized_type", file_name=file_name, extension=extension)

    parts: list[bytes] = []
    total = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total += len(part)
        if total > _MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="File exceeds the 20 MB upload limit")
        parts.append(part)

    document = await ingestion.register_upload(
        b"".join(parts),
        file_name=file_name,
        media_type=file.content_type,
        category=category,
    )
    if not process:
        return IngestionResult(
            document_id=document.document_id,
            status=DocumentStatus.PENDING,
            file_type=document.extension,
        )
    return await ingestion.process_document(document.document_id)


@router.get("/documents/{document_id}", response_model=Document, summary="Document status")
async def get_document(document_id: str, store: StoreDep) -> Document:
    document = await store.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Unknown document {document_id}")
    return document


@router.post(
    "/documents/{document_id}/process",
    response_model=IngestionResult,
    summary="Process a pending document",
)
async def process_document(
    document_id: str,
    ingestion: IngestionDep,
    store: StoreDep,
) -> IngestionResult:
    if await store.get_document(document_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown document {document_id}")
    try:
        return await ingestion.process_document(document_id)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    summary="Delete a document and its chunks",
)
async def delete_document(document_id: str, ingestion: IngestionDep) -> DeleteResponse:
    deleted = await ingestion.delete_document(document_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Unknown document {document_id}")
    return DeleteResponse(document_id=document_id, deleted=True)


# ---------------------------------------------------------------------------
# Web content and crawling
# ---------------------------------------------------------------------------


@router.post("/ingest", response_model=IngestionResult, summary="Ingest web content")
async def ingest_content(body: IngestRequest, ingestion: IngestionDep) -> IngestionResult:
    return await ingestion.ingest_web_content(
        url=body.url,
        content=body.content,
        title=body.title,
        category=body.category,
    )


@router.post("/crawl", summary="Run one crawl pass over the configured sources")
async def trigger_crawl(coordinator: CrawlDep) -> dict[str, Any]:
    report = await coordinator.run()
    return report.summary()


@router.get("/deals", response_model=list[DealRecord], summary="Recently extracted deals")
async def list_deals(
    store: StoreDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[DealRecord]:
    return await store.list_deals(limit=limit)


# ---------------------------------------------------------------------------
# Querying
# ---------------------------------------------------------------------------


@router.post("/query", summary="Answer a question as a server-sent-event stream")
async def query(body: QueryRequest, service: QueryDep) -> StreamingResponse:
    """Stream ``delta`` events, then one ``answer`` event, then ``[DONE]``.

    The first item is awaited before the response starts, so provider
    failures at connect time (rate limit, quota) surface as HTTP errors.
    Failures after streaming began arrive as an ``error`` event.
    """
    items = service.stream(body)
    first = await items.__anext__()
    return StreamingResponse(
        _sse_events(first, items),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/web-search", response_model=WebSearchAnswer, summary="Answer from the web")
async def web_search(body: WebSearchRequest, service: QueryDep) -> WebSearchAnswer:
    return await service.web_search(body.query, body.language)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    status = "healthy" if providers.get("llm", False) else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def _sse_events(
    first: StreamDelta | QueryAnswer,
    rest: AsyncIterator[StreamDelta | QueryAnswer],
) -> AsyncIterator[str]:
    async def _all() -> AsyncIterator[StreamDelta | QueryAnswer]:
        yield first
        async for item in rest:
            yield item

    try:
        async for item in _all():
            if isinstance(item, StreamDelta):
                yield _sse({"type": "delta", "content": item.content})
            else:
                yield _sse({"type": "answer", **item.model_dump(mode="json")})
    except VentureLensError as exc:
        _logger.error("query_stream_failed", error=str(exc))
        yield _sse(
            {
                "type": "error",
                "category": categorize_error(exc).value,
                "message": exc.message,
            }
        )
    yield "data: [DONE]\n\n"
