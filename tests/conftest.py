"""Shared pytest fixtures for the VentureLens test suite."""

from __future__ import annotations

import io
import json
import struct
import zipfile
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

import docx
import pytest
import pytest_asyncio

from venturelens.interfaces.llm_provider import ILLMProvider
from venturelens.interfaces.scraper_provider import IScraperProvider, ScrapedPage
from venturelens.models.knowledge import KnowledgeChunk
from venturelens.providers.storage.sqlite_knowledge_store import SQLiteKnowledgeStore
from venturelens.services.funding_extractor import FundingExtractor
from venturelens.services.ingestion.chunker import TextChunker
from venturelens.services.ingestion.ingestion_service import IngestionService
from venturelens.services.ingestion.keyword_extractor import KeywordExtractor
from venturelens.services.ingestion.text_extractor import TextExtractor

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def sse_bytes(*fragments: str, done: bool = True) -> bytes:
    """Encode text fragments as an OpenAI-style streamed completion body."""
    lines = [
        "data: " + json.dumps({"choices": [{"delta": {"content": f}}]}) + "\n"
        for f in fragments
    ]
    if done:
        lines.append("data: [DONE]\n")
    return "".join(lines).encode("utf-8")


class FakeLLM(ILLMProvider):
    """Deterministic in-memory LLM.

    ``completion`` is returned by :meth:`complete`; ``stream_reads`` are the
    raw byte chunks yielded by :meth:`stream_chat`.  Every call is recorded.
    """

    def __init__(
        self,
        completion: str = "fintech, bangalore, series a",
        stream_reads: Sequence[bytes] = (),
        available: bool = True,
        complete_error: Exception | None = None,
        stream_error: Exception | None = None,
    ) -> None:
        self.completion = completion
        self.stream_reads = list(stream_reads)
        self.available = available
        self.complete_error = complete_error
        self.stream_error = stream_error
        self.complete_calls: list[dict[str, object]] = []
        self.stream_calls: list[list[dict[str, str]]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        self.complete_calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "max_tokens": max_tokens}
        )
        if self.complete_error is not None:
            raise self.complete_error
        return self.completion

    async def stream_chat(self, messages: Sequence[dict[str, str]]) -> AsyncIterator[bytes]:
        self.stream_calls.append(list(messages))
        if self.stream_error is not None:
            raise self.stream_error
        for read in self.stream_reads:
            yield read

    def get_provider_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return self.available


class FakeScraper(IScraperProvider):
    """Scraper returning canned pages keyed by URL."""

    def __init__(self, pages: dict[str, ScrapedPage | Exception] | None = None) -> None:
        self.pages = pages or {}
        self.calls: list[str] = []

    async def scrape(self, url: str) -> ScrapedPage:
        self.calls.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        return page or ScrapedPage(url=url, content="")

    def get_provider_name(self) -> str:
        return "fake-scraper"

    def is_available(self) -> bool:
        return True


def make_chunk(
    text: str,
    *,
    index: int = 0,
    source_id: str = "src-1",
    keywords: list[str] | None = None,
    **metadata: object,
) -> KnowledgeChunk:
    return KnowledgeChunk(
        chunk_id=f"{source_id}-{index}",
        source_id=source_id,
        chunk_index=index,
        text=text,
        keywords=keywords,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------


def docx_bytes(*paragraphs: list[str]) -> bytes:
    """Build a .docx file; each paragraph is given as its list of runs."""
    document = docx.Document()
    for runs in paragraphs:
        paragraph = document.add_paragraph()
        for run in runs:
            paragraph.add_run(run)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def corrupt_zip_member(data: bytes, name: str) -> bytes:
    """Overwrite the deflated body of archive member *name* with 0xFF bytes."""
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        info = archive.getinfo(name)
    assert info.compress_type == zipfile.ZIP_DEFLATED

    buf = bytearray(data)
    header = info.header_offset
    name_len, extra_len = struct.unpack("<HH", buf[header + 26 : header + 30])
    start = header + 30 + name_len + extra_len
    buf[start : start + info.compress_size] = b"\xff" * info.compress_size
    return bytes(buf)


# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------


@pytest.fixture
def funding_news_text() -> str:
    """A short crawled funding-news page with three paragraphs."""
    return (
        "Acme Robotics raised $5 million in Series A from ExampleVC. The Bangalore "
        "company builds warehouse automation for mid-sized retailers.\n\n"
        "PayWise secured Rs 50 crore in a round led by Sequoia Capital India. The "
        "FinTech startup will use the money to expand lending products in Pune.\n\n"
        "Separately, the company confirmed $2 billion funding for GreenGrid. It is "
        "the largest climate deal of the quarter, according to people familiar."
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


# ---------------------------------------------------------------------------
# Storage and services
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteKnowledgeStore:
    """A freshly initialised SQLite knowledge store in a temp directory."""
    knowledge_store = SQLiteKnowledgeStore(db_path=tmp_path / "knowledge.db")
    await knowledge_store.initialize()
    return knowledge_store


@pytest.fixture
def ingestion_service(store: SQLiteKnowledgeStore, fake_llm: FakeLLM) -> IngestionService:
    """IngestionService over the temp store with small, test-friendly chunk sizes."""
    return IngestionService(
        store=store,
        text_extractor=TextExtractor(),
        document_chunker=TextChunker(max_chars=200, overlap=40, min_chars=20),
        web_chunker=TextChunker(max_chars=250, min_chars=20),
        keyword_extractor=KeywordExtractor(llm=fake_llm),
        funding_extractor=FundingExtractor(),
        min_extracted_chars=10,
        keyword_tagged_chunk_limit=2,
    )
