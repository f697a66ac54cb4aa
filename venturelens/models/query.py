"""Query-side models: conversation turns, requests, citations, and answers."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RetrievalMode(str, Enum):  # noqa: UP042
    """Where an answer may draw its grounding from."""

    DOCUMENTS = "documents"
    WEB = "web"
    COMBINED = "combined"


class ConversationTurn(BaseModel):
    """One user or assistant message of an in-memory query session."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class QueryRequest(BaseModel):
    """Everything the UI layer supplies for one question."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1)
    mode: RetrievalMode = RetrievalMode.COMBINED
    language: str = "en"
    history: list[ConversationTurn] = Field(default_factory=list)


class SourceCitation(BaseModel):
    """A provenance entry attached to an answer."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str = "document"
    url: str | None = None


class StreamDelta(BaseModel):
    """One incremental text fragment decoded from a streamed completion."""

    model_config = ConfigDict(frozen=True)

    content: str


class WebSearchAnswer(BaseModel):
    """Answer text plus link citations returned by the web-search provider."""

    model_config = ConfigDict(frozen=True)

    content: str = ""
    citations: list[SourceCitation] = Field(default_factory=list)


class QueryAnswer(BaseModel):
    """Fully assembled answer for one query."""

    model_config = ConfigDict(frozen=True)

    content: str
    citations: list[SourceCitation] = Field(default_factory=list)
    web: WebSearchAnswer | None = None
    needs_web_search: bool = False
    chunks_used: int = Field(default=0, ge=0)
