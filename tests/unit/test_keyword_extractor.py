"""Unit tests for KeywordExtractor."""

from __future__ import annotations

import pytest
from conftest import FakeLLM, make_chunk

from venturelens.services.ingestion.keyword_extractor import KeywordExtractor


class TestParseKeywords:
    def test_trims_lowercases_and_deduplicates(self) -> None:
        response = " FinTech, bangalore ,, 'Series A'.\n, fintech, *Payments*"

        assert KeywordExtractor.parse_keywords(response) == [
            "fintech",
            "bangalore",
            "series a",
            "payments",
        ]

    def test_empty_response_yields_nothing(self) -> None:
        assert KeywordExtractor.parse_keywords(" , ,\n") == []


class TestExtract:
    @pytest.mark.asyncio
    async def test_returns_parsed_keywords(self, fake_llm: FakeLLM) -> None:
        keywords = await KeywordExtractor(fake_llm).extract("Acme is a Bangalore FinTech.")

        assert keywords == ["fintech", "bangalore", "series a"]
        assert fake_llm.complete_calls[0]["max_tokens"] == 200

    @pytest.mark.asyncio
    async def test_only_prefix_is_sent(self, fake_llm: FakeLLM) -> None:
        await KeywordExtractor(fake_llm, prefix_chars=10).extract("x" * 50)

        assert fake_llm.complete_calls[0]["user_prompt"] == "x" * 10

    @pytest.mark.asyncio
    async def test_long_query_is_cut_to_prefix(self, fake_llm: FakeLLM) -> None:
        await KeywordExtractor(fake_llm, prefix_chars=12).extract_for_query("fintech " * 40)

        assert fake_llm.complete_calls[0]["user_prompt"] == "fintech fint"

    @pytest.mark.asyncio
    async def test_query_uses_its_own_prompt(self, fake_llm: FakeLLM) -> None:
        extractor = KeywordExtractor(fake_llm)
        await extractor.extract("chunk text")
        await extractor.extract_for_query("Which fintechs raised money?")

        chunk_prompt = fake_llm.complete_calls[0]["system_prompt"]
        query_prompt = fake_llm.complete_calls[1]["system_prompt"]
        assert chunk_prompt != query_prompt
        assert fake_llm.complete_calls[1]["user_prompt"] == "Which fintechs raised money?"

    @pytest.mark.asyncio
    async def test_provider_failure_yields_empty_list(self) -> None:
        llm = FakeLLM(complete_error=RuntimeError("connection reset"))

        assert await KeywordExtractor(llm).extract("some text") == []
        assert await KeywordExtractor(llm).extract_for_query("some query") == []

    @pytest.mark.asyncio
    async def test_unavailable_provider_is_not_called(self) -> None:
        llm = FakeLLM(available=False)

        assert await KeywordExtractor(llm).extract("some text") == []
        assert llm.complete_calls == []

    @pytest.mark.asyncio
    async def test_missing_provider_yields_empty_list(self) -> None:
        assert await KeywordExtractor(None).extract_for_query("anything") == []

    @pytest.mark.asyncio
    async def test_blank_text_is_skipped(self, fake_llm: FakeLLM) -> None:
        assert await KeywordExtractor(fake_llm).extract("   ") == []
        assert fake_llm.complete_calls == []


class TestTagChunks:
    @pytest.mark.asyncio
    async def test_only_first_chunks_are_tagged(self, fake_llm: FakeLLM) -> None:
        chunks = [make_chunk(f"chunk {i}", index=i) for i in range(3)]

        tagged = await KeywordExtractor(fake_llm).tag_chunks(chunks, limit=2)

        assert [c.chunk_index for c in tagged] == [0, 1, 2]
        assert tagged[0].keywords == ["fintech", "bangalore", "series a"]
        assert tagged[1].keywords == ["fintech", "bangalore", "series a"]
        assert tagged[2].keywords is None
        assert len(fake_llm.complete_calls) == 2

    @pytest.mark.asyncio
    async def test_failed_extraction_leaves_keywords_unset(self) -> None:
        llm = FakeLLM(completion="")
        chunks = [make_chunk("Acme raised money.")]

        tagged = await KeywordExtractor(llm).tag_chunks(chunks)

        assert tagged[0].keywords is None
        assert tagged[0].text == "Acme raised money."

    @pytest.mark.asyncio
    async def test_empty_input(self, fake_llm: FakeLLM) -> None:
        assert await KeywordExtractor(fake_llm).tag_chunks([]) == []
