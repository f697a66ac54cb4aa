"""Unit tests for the streamed-completion decoder."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import pytest
from conftest import sse_bytes

from venturelens.services.stream_decoder import SSEStreamDecoder, decode_stream, iter_deltas


def _text(deltas) -> str:
    return "".join(d.content for d in deltas)


def _split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


async def _areads(reads: list[bytes]) -> AsyncIterator[bytes]:
    for read in reads:
        yield read


class TestSSEStreamDecoder:
    def test_record_split_mid_json_decodes_once_complete(self) -> None:
        decoder = SSEStreamDecoder()

        first = decoder.feed(b'data: {"choi')
        second = decoder.feed(b'ces":[{"delta":{"content":"Hello"}}]}\n')

        assert first == []
        assert _text(second) == "Hello"
        assert decoder.pending == ""

    def test_arbitrary_read_boundaries_match_single_read(self) -> None:
        body = sse_bytes("Acme ", "raised ", "$5 million ", "in Series A.")
        whole = _text(iter_deltas([body]))

        for size in (1, 3, 7, 16):
            assert _text(iter_deltas(_split_every(body, size))) == whole
        assert whole == "Acme raised $5 million in Series A."

    def test_multibyte_characters_split_across_reads(self) -> None:
        payload = json.dumps(
            {"choices": [{"delta": {"content": "₹50 crore for Café Coffee"}}]}, ensure_ascii=False
        )
        reads = _split_every(f"data: {payload}\n".encode(), 5)

        assert _text(iter_deltas(reads)) == "₹50 crore for Café Coffee"

    def test_done_sentinel_stops_decoding(self) -> None:
        decoder = SSEStreamDecoder()
        deltas = decoder.feed(sse_bytes("one") + sse_bytes("two", done=False))

        assert _text(deltas) == "one"
        assert decoder.done
        assert decoder.feed(sse_bytes("three")) == []
        assert decoder.flush() == []

    def test_comments_and_other_fields_are_ignored(self) -> None:
        payload = json.dumps({"choices": [{"delta": {"content": "hi"}}]})
        body = f": keep-alive\n\nevent: message\r\ndata: {payload}\r\n".encode()

        assert _text(SSEStreamDecoder().feed(body)) == "hi"

    def test_payloads_without_text_are_skipped(self) -> None:
        lines = [
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": []},
            {"choices": [{"delta": {"content": None}}]},
            ["not", "a", "dict"],
            {"choices": [{"delta": {"content": "ok"}}]},
        ]
        body = "".join(f"data: {json.dumps(line)}\n" for line in lines).encode()

        assert _text(SSEStreamDecoder().feed(body)) == "ok"

    def test_flush_recovers_unterminated_final_line(self) -> None:
        decoder = SSEStreamDecoder()
        payload = json.dumps({"choices": [{"delta": {"content": "tail"}}]})

        assert decoder.feed(f"data: {payload}".encode()) == []
        assert _text(decoder.flush()) == "tail"

    def test_flush_drops_truncated_record(self) -> None:
        decoder = SSEStreamDecoder()
        decoder.feed(sse_bytes("kept", done=False) + b'data: {"choices": [{"del')

        assert decoder.flush() == []
        assert decoder.pending == ""


class TestDecodeStream:
    @pytest.mark.asyncio
    async def test_yields_deltas_in_order(self) -> None:
        body = sse_bytes("Pay", "Wise")
        deltas = [d async for d in decode_stream(_areads(_split_every(body, 11)))]

        assert [d.content for d in deltas] == ["Pay", "Wise"]

    @pytest.mark.asyncio
    async def test_stops_reading_after_done(self) -> None:
        consumed: list[bytes] = []

        async def reads() -> AsyncIterator[bytes]:
            for read in (sse_bytes("a"), sse_bytes("b")):
                consumed.append(read)
                yield read

        deltas = [d async for d in decode_stream(reads())]

        assert _text(deltas) == "a"
        assert len(consumed) == 1

    @pytest.mark.asyncio
    async def test_stream_without_sentinel_is_flushed(self) -> None:
        payload = json.dumps({"choices": [{"delta": {"content": "end"}}]})
        reads = [sse_bytes("start ", done=False), f"data: {payload}".encode()]

        assert _text([d async for d in decode_stream(_areads(reads))]) == "start end"
