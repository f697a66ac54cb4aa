"""Integration tests for SQLiteKnowledgeStore against a real temp database."""

from __future__ import annotations

import pytest
from conftest import make_chunk

from venturelens.models.deals import DealRecord
from venturelens.models.knowledge import Document, DocumentStatus, SourceType
from venturelens.providers.storage.sqlite_knowledge_store import SQLiteKnowledgeStore
from venturelens.utils.errors import StorageError


async def _document(store: SQLiteKnowledgeStore, document_id: str = "doc-1") -> Document:
    path = f"documents/{document_id}/deals.txt"
    await store.put_blob(path, b"Acme raised $5 million.")
    return await store.create_document(
        Document(document_id=document_id, file_name="deals.txt", file_path=path, file_size=23)
    )


class TestBlobsAndDocuments:
    @pytest.mark.asyncio
    async def test_blob_round_trip_and_replace(self, store: SQLiteKnowledgeStore) -> None:
        await store.put_blob("documents/x/a.txt", b"first")
        await store.put_blob("documents/x/a.txt", b"second")

        assert await store.get_blob("documents/x/a.txt") == b"second"

    @pytest.mark.asyncio
    async def test_missing_blob_raises(self, store: SQLiteKnowledgeStore) -> None:
        with pytest.raises(StorageError):
            await store.get_blob("documents/nope/a.txt")

    @pytest.mark.asyncio
    async def test_document_status_updates(self, store: SQLiteKnowledgeStore) -> None:
        await _document(store)

        await store.update_document_status("doc-1", DocumentStatus.PROCESSING)
        await store.update_document_status("doc-1", DocumentStatus.READY, chunk_count=4)
        document = await store.get_document("doc-1")

        assert document is not None
        assert document.status is DocumentStatus.READY
        assert document.chunk_count == 4
        assert document.file_size == 23

    @pytest.mark.asyncio
    async def test_unknown_document(self, store: SQLiteKnowledgeStore) -> None:
        assert await store.get_document("missing") is None
        assert await store.delete_document("missing") is False
        with pytest.raises(StorageError):
            await store.update_document_status("missing", DocumentStatus.ERROR)

    @pytest.mark.asyncio
    async def test_delete_cascades_to_sources_chunks_and_blob(
        self, store: SQLiteKnowledgeStore
    ) -> None:
        document = await _document(store)
        source = await store.upsert_data_source(
            url=document.file_path,
            title="deals.txt",
            source_type=SourceType.REPORT,
            content="Acme raised $5 million.",
            metadata={"documentId": "doc-1"},
            document_id="doc-1",
        )
        await store.replace_chunks(source.source_id, [make_chunk("Acme", source_id=source.source_id)])

        assert await store.delete_document("doc-1") is True

        assert await store.get_document("doc-1") is None
        assert await store.get_data_source_by_url(document.file_path) is None
        assert await store.list_chunks(10) == []
        with pytest.raises(StorageError):
            await store.get_blob(document.file_path)


class TestSourcesAndChunks:
    @pytest.mark.asyncio
    async def test_upsert_by_url_keeps_one_row(self, store: SQLiteKnowledgeStore) -> None:
        first = await store.upsert_data_source(
            url="https://inc42.com/buzz",
            title="Old",
            source_type=SourceType.WEB,
            content="old",
            metadata={"category": "funding_news"},
        )
        second = await store.upsert_data_source(
            url="https://inc42.com/buzz",
            title="New",
            source_type=SourceType.WEB,
            content="new",
            metadata={"category": "deals"},
        )

        assert second.source_id == first.source_id
        assert second.title == "New"
        assert second.metadata == {"category": "deals"}
        assert second.updated_at >= first.updated_at

    @pytest.mark.asyncio
    async def test_replace_chunks_swaps_the_set(self, store: SQLiteKnowledgeStore) -> None:
        source = await store.upsert_data_source(
            url="https://inc42.com/buzz",
            title=None,
            source_type=SourceType.WEB,
            content="x",
            metadata={},
        )
        sid = source.source_id
        await store.replace_chunks(
            sid, [make_chunk(f"old {i}", index=i, source_id=sid) for i in range(3)]
        )

        stored = await store.replace_chunks(
            sid,
            [
                make_chunk("new 0", index=0, source_id=f"{sid}-v2", keywords=["fintech"]),
                make_chunk("new 1", index=1, source_id=f"{sid}-v2"),
            ],
        )
        chunks = await store.list_chunks(10)

        assert stored == 2
        assert [(c.chunk_index, c.text) for c in chunks] == [(0, "new 0"), (1, "new 1")]
        assert all(c.source_id == sid for c in chunks)
        assert chunks[0].keywords == ["fintech"]
        assert chunks[1].keywords is None

    @pytest.mark.asyncio
    async def test_documents_only_pool(self, store: SQLiteKnowledgeStore) -> None:
        document = await _document(store)
        doc_source = await store.upsert_data_source(
            url=document.file_path,
            title="deals.txt",
            source_type=SourceType.REPORT,
            content="doc",
            metadata={},
            document_id=document.document_id,
        )
        web_source = await store.upsert_data_source(
            url="https://inc42.com/buzz",
            title="Inc42",
            source_type=SourceType.WEB,
            content="web",
            metadata={},
        )
        await store.replace_chunks(
            doc_source.source_id,
            [make_chunk("from the document", source_id=doc_source.source_id, documentId="doc-1")],
        )
        await store.replace_chunks(
            web_source.source_id,
            [make_chunk("from the web", source_id=web_source.source_id)],
        )

        everything = await store.list_chunks(10)
        documents = await store.list_chunks(10, documents_only=True)

        assert {c.text for c in everything} == {"from the document", "from the web"}
        assert [c.text for c in documents] == ["from the document"]
        assert documents[0].metadata == {"documentId": "doc-1"}
        assert len(await store.list_chunks(1)) == 1


class TestDeals:
    @pytest.mark.asyncio
    async def test_duplicates_are_ignored(self, store: SQLiteKnowledgeStore) -> None:
        deals = [
            DealRecord(startup_name="Acme", funding_amount=5e6, funding_round="Series A"),
            DealRecord(startup_name="PayWise", funding_amount=6e8, source_id="src-1"),
        ]

        assert await store.insert_deals(deals) == 2
        assert await store.insert_deals([DealRecord(startup_name="ACME", funding_amount=5e6)]) == 0
        assert await store.insert_deals([DealRecord(startup_name="Acme", funding_amount=9e6)]) == 1

        listed = await store.list_deals()
        assert len(listed) == 3
        acme = next(d for d in listed if d.funding_amount == 5e6)
        assert acme.startup_name == "Acme"
        assert acme.funding_round == "Series A"
        assert acme.auto_extracted is True

    @pytest.mark.asyncio
    async def test_list_limit(self, store: SQLiteKnowledgeStore) -> None:
        await store.insert_deals(
            [DealRecord(startup_name=f"Startup {i}", funding_amount=float(i)) for i in range(5)]
        )

        assert len(await store.list_deals(limit=2)) == 2

    def test_provider_name(self, tmp_path) -> None:
        assert SQLiteKnowledgeStore(tmp_path / "x.db").get_provider_name() == "sqlite"
