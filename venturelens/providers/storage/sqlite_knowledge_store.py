"""SQLite-backed knowledge store.

Persists documents, data sources, chunks, deal records, and raw uploaded
bytes in a single local database (``data/venturelens.db`` by default).  Uses
``aiosqlite`` for async I/O and opens a short-lived connection per call.

Natural keys carry the conflict semantics the pipeline relies on:

- ``data_sources.url`` is unique; re-ingesting a URL updates its row.
- ``deals(startup_key, funding_amount)`` is unique; duplicate deals are
  dropped by ``INSERT OR IGNORE``.
- ``chunks`` cascade with their data source, and data sources of uploaded
  files cascade with their document.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from venturelens.interfaces.storage_provider import IKnowledgeStore
from venturelens.models.deals import DealRecord
from venturelens.models.knowledge import (
    DataSource,
    Document,
    DocumentStatus,
    KnowledgeChunk,
    SourceType,
)
from venturelens.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/venturelens.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id           TEXT    PRIMARY KEY,
    file_name    TEXT    NOT NULL,
    file_path    TEXT    NOT NULL,
    media_type   TEXT,
    file_size    INTEGER NOT NULL DEFAULT 0,
    category     TEXT,
    status       TEXT    NOT NULL,
    chunk_count  INTEGER NOT NULL DEFAULT 0,
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS data_sources (
    id           TEXT PRIMARY KEY,
    url          TEXT NOT NULL UNIQUE,
    title        TEXT,
    source_type  TEXT NOT NULL,
    content      TEXT,
    metadata     TEXT NOT NULL DEFAULT '{}',
    document_id  TEXT REFERENCES documents(id) ON DELETE CASCADE,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    id           TEXT    PRIMARY KEY,
    source_id    TEXT    NOT NULL REFERENCES data_sources(id) ON DELETE CASCADE,
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    keywords     TEXT,
    metadata     TEXT    NOT NULL DEFAULT '{}'
);
""",
    """\
CREATE TABLE IF NOT EXISTS deals (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    startup_name    TEXT    NOT NULL,
    startup_key     TEXT    NOT NULL,
    funding_amount  REAL    NOT NULL,
    funding_date    TEXT    NOT NULL,
    funding_round   TEXT,
    source_id       TEXT,
    raw_match       TEXT    NOT NULL DEFAULT '',
    extracted_at    TEXT    NOT NULL,
    auto_extracted  INTEGER NOT NULL DEFAULT 1,
    UNIQUE(startup_key, funding_amount)
);
""",
    """\
CREATE TABLE IF NOT EXISTS blobs (
    path        TEXT PRIMARY KEY,
    data        BLOB NOT NULL,
    created_at  TEXT NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_source ON chunks(source_id, chunk_index);",
    "CREATE INDEX IF NOT EXISTS idx_sources_document ON data_sources(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_deals_extracted ON deals(extracted_at);",
]

_UPSERT_SOURCE_SQL = """\
INSERT INTO data_sources
    (id, url, title, source_type, content, metadata, document_id, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(url)
DO UPDATE SET title       = excluded.title,
              source_type = excluded.source_type,
              content     = excluded.content,
              metadata    = excluded.metadata,
              document_id = COALESCE(excluded.document_id, data_sources.document_id),
              updated_at  = excluded.updated_at;
"""

_INSERT_DEAL_SQL = """\
INSERT OR IGNORE INTO deals
    (startup_name, startup_key, funding_amount, funding_date, funding_round,
     source_id, raw_match, extracted_at, auto_extracted)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_CHUNKS_SQL = """\
SELECT c.id, c.source_id, c.chunk_index, c.content, c.keywords, c.metadata
FROM chunks c
JOIN data_sources d ON d.id = c.source_id
{where}
ORDER BY d.updated_at DESC, c.source_id, c.chunk_index
LIMIT ?;
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteKnowledgeStore(IKnowledgeStore):
    """SQLite-backed knowledge base persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("knowledge_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Blobs
    # ------------------------------------------------------------------

    async def put_blob(self, path: str, data: bytes) -> None:
        async with self._connect() as db:
            await db.execute(
                "INSERT OR REPLACE INTO blobs (path, data, created_at) VALUES (?, ?, ?)",
                (path, data, _now()),
            )
            await db.commit()

    async def get_blob(self, path: str) -> bytes:
        async with self._connect() as db:
            cursor = await db.execute("SELECT data FROM blobs WHERE path = ?", (path,))
            row = await cursor.fetchone()
        if row is None:
            raise StorageError(
                message=f"No blob stored at {path}",
                provider_name=self.get_provider_name(),
            )
        return bytes(row["data"])

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO documents (id, file_name, file_path, media_type, file_size, "
                "category, status, chunk_count, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    document.document_id,
                    document.file_name,
                    document.file_path,
                    document.media_type,
                    document.file_size,
                    document.category,
                    document.status.value,
                    document.chunk_count,
                    document.created_at.isoformat(),
                    document.updated_at.isoformat(),
                ),
            )
            await db.commit()
        logger.info("document_created", document_id=document.document_id)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM documents WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return _row_to_document(row) if row is not None else None

    async def update_document_status(
        self,
        document_id: str,
        status: DocumentStatus,
        chunk_count: int | None = None,
    ) -> None:
        async with self._connect() as db:
            if chunk_count is None:
                cursor = await db.execute(
                    "UPDATE documents SET status = ?, updated_at = ? WHERE id = ?",
                    (status.value, _now(), document_id),
                )
            else:
                cursor = await db.execute(
                    "UPDATE documents SET status = ?, chunk_count = ?, updated_at = ? WHERE id = ?",
                    (status.value, chunk_count, _now(), document_id),
                )
            await db.commit()
        if cursor.rowcount == 0:
            raise StorageError(
                message=f"Unknown document {document_id}",
                provider_name=self.get_provider_name(),
            )

    async def delete_document(self, document_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT file_path FROM documents WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return False
            await db.execute("DELETE FROM blobs WHERE path = ?", (row["file_path"],))
            # data_sources and their chunks follow via ON DELETE CASCADE.
            await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
        logger.info("document_deleted", document_id=document_id)
        return True

    # ------------------------------------------------------------------
    # Data sources and chunks
    # ------------------------------------------------------------------

    async def upsert_data_source(
        self,
        url: str,
        title: str | None,
        source_type: SourceType,
        content: str | None,
        metadata: dict[str, Any],
        document_id: str | None = None,
    ) -> DataSource:
        now = _now()
        async with self._connect() as db:
            await db.execute(
                _UPSERT_SOURCE_SQL,
                (
                    str(uuid.uuid4()),
                    url,
                    title,
                    source_type.value,
                    content,
                    json.dumps(metadata),
                    document_id,
                    now,
                    now,
                ),
            )
            await db.commit()
            cursor = await db.execute("SELECT * FROM data_sources WHERE url = ?", (url,))
            row = await cursor.fetchone()
        if row is None:
            raise StorageError(
                message=f"Data source upsert for {url} left no row",
                provider_name=self.get_provider_name(),
            )
        return _row_to_source(row)

    async def get_data_source_by_url(self, url: str) -> DataSource | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM data_sources WHERE url = ?", (url,))
            row = await cursor.fetchone()
        return _row_to_source(row) if row is not None else None

    async def replace_chunks(self, source_id: str, chunks: Sequence[KnowledgeChunk]) -> int:
        async with self._connect() as db:
            await db.execute("DELETE FROM chunks WHERE source_id = ?", (source_id,))
            await db.executemany(
                "INSERT INTO chunks (id, source_id, chunk_index, content, keywords, metadata) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (
                        chunk.chunk_id,
                        source_id,
                        chunk.chunk_index,
                        chunk.text,
                        json.dumps(chunk.keywords) if chunk.keywords is not None else None,
                        json.dumps(chunk.metadata),
                    )
                    for chunk in chunks
                ],
            )
            await db.commit()
        logger.info("chunks_replaced", source_id=source_id, count=len(chunks))
        return len(chunks)

    async def list_chunks(
        self,
        limit: int,
        documents_only: bool = False,
    ) -> list[KnowledgeChunk]:
        where = "WHERE d.document_id IS NOT NULL" if documents_only else ""
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CHUNKS_SQL.format(where=where), (limit,))
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    # ------------------------------------------------------------------
    # Deals
    # ------------------------------------------------------------------

    async def insert_deals(self, deals: Sequence[DealRecord]) -> int:
        inserted = 0
        async with self._connect() as db:
            for deal in deals:
                cursor = await db.execute(
                    _INSERT_DEAL_SQL,
                    (
                        deal.startup_name,
                        deal.dedup_key[0],
                        deal.funding_amount,
                        deal.funding_date.isoformat(),
                        deal.funding_round,
                        deal.source_id,
                        deal.raw_match,
                        deal.extracted_at.isoformat(),
                        int(deal.auto_extracted),
                    ),
                )
                inserted += max(cursor.rowcount, 0)
            await db.commit()
        logger.info("deals_inserted", offered=len(deals), inserted=inserted)
        return inserted

    async def list_deals(self, limit: int = 100) -> list[DealRecord]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM deals ORDER BY extracted_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
        return [
            DealRecord(
                startup_name=r["startup_name"],
                funding_amount=r["funding_amount"],
                source_id=r["source_id"],
                funding_date=date.fromisoformat(r["funding_date"]),
                funding_round=r["funding_round"],
                raw_match=r["raw_match"],
                extracted_at=datetime.fromisoformat(r["extracted_at"]),
                auto_extracted=bool(r["auto_extracted"]),
            )
            for r in rows
        ]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with foreign keys enforced and dict-like rows."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"SQLite error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        document_id=row["id"],
        file_name=row["file_name"],
        file_path=row["file_path"],
        media_type=row["media_type"],
        file_size=row["file_size"],
        category=row["category"],
        status=DocumentStatus(row["status"]),
        chunk_count=row["chunk_count"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_source(row: aiosqlite.Row) -> DataSource:
    return DataSource(
        source_id=row["id"],
        url=row["url"],
        title=row["title"],
        source_type=SourceType(row["source_type"]),
        content=row["content"],
        metadata=json.loads(row["metadata"] or "{}"),
        document_id=row["document_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_chunk(row: aiosqlite.Row) -> KnowledgeChunk:
    keywords = json.loads(row["keywords"]) if row["keywords"] is not None else None
    return KnowledgeChunk(
        chunk_id=row["id"],
        source_id=row["source_id"],
        chunk_index=row["chunk_index"],
        text=row["content"],
        keywords=keywords,
        metadata=json.loads(row["metadata"] or "{}"),
    )
