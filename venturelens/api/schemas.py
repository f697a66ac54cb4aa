"""Pydantic request/response schemas for the VentureLens API.

Request schemas end with ``Request``, response schemas with ``Response``.
Domain models (:class:`Document`, :class:`IngestionResult`,
:class:`WebSearchAnswer`, :class:`DealRecord`) are returned as-is where their
shape is already the public contract.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
    category: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class IngestRequest(BaseModel):
    """Web content pushed for ingestion."""

    url: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    title: str | None = None
    category: str = "funding_news"


class WebSearchRequest(BaseModel):
    """A question answered from live web results only."""

    query: str = Field(..., min_length=1, max_length=2000)
    language: str = "en"


class DeleteResponse(BaseModel):
    document_id: str
    deleted: bool
