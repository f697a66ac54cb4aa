"""Incremental decoder for streamed chat-completion responses.

The completion API streams newline-delimited server-sent-event records::

    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: {"choices":[{"delta":{"content":"lo"}}]}
    data: [DONE]

Network reads do not respect line boundaries, so the decoder keeps an
unconsumed remainder between reads.  A ``data:`` line whose JSON fails to
parse is taken as evidence the line was cut short: it is pushed back onto
the buffer and decoding resumes when more bytes arrive.  When the stream
ends, one last pass over the remainder recovers whatever still parses and
silently drops the rest.

:class:`SSEStreamDecoder` is the push-style state machine;
:func:`decode_stream` and :func:`iter_deltas` wrap it as pull-based
generators over async and sync byte sources.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

import structlog

from venturelens.models.query import StreamDelta

logger = structlog.get_logger(logger_name=__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEStreamDecoder:
    """Turns raw byte chunks into :class:`StreamDelta` events."""

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._done = False

    @property
    def done(self) -> bool:
        """``True`` once the termination sentinel has been seen."""
        return self._done

    @property
    def pending(self) -> str:
        """Text received but not yet consumed."""
        return self._buffer

    def feed(self, data: bytes) -> list[StreamDelta]:
        """Consume one network read and return the deltas it completed."""
        if self._done:
            return []
        self._buffer += self._utf8.decode(data)

        deltas: list[StreamDelta] = []
        while not self._done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1 :]

            try:
                delta = self._parse_line(line)
            except json.JSONDecodeError:
                # Incomplete record: put it back and wait for more bytes.
                self._buffer = f"{line}\n{self._buffer}"
                break
            if delta is not None:
                deltas.append(delta)
        return deltas

    def flush(self) -> list[StreamDelta]:
        """Best-effort pass over whatever remains after the stream ended."""
        self._buffer += self._utf8.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if self._done or not remainder.strip():
            return []

        deltas: list[StreamDelta] = []
        for line in remainder.split("\n"):
            if self._done:
                break
            try:
                delta = self._parse_line(line)
            except json.JSONDecodeError:
                logger.debug("stream_fragment_dropped", fragment=line[:120])
                continue
            if delta is not None:
                deltas.append(delta)
        return deltas

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _parse_line(self, line: str) -> StreamDelta | None:
        """Decode one SSE line.

        Returns ``None`` for comments, blank lines, non-data fields,
        the sentinel, and payloads without text.

        Raises
        ------
        json.JSONDecodeError
            If the payload is not (yet) valid JSON.
        """
        line = line.rstrip("\r")
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            self._done = True
            return None

        content = _delta_content(json.loads(payload))
        if not content:
            return None
        return StreamDelta(content=content)


def _delta_content(payload: Any) -> str | None:
    """Return ``choices[0].delta.content`` from a chunk payload, if present."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


# ---------------------------------------------------------------------------
# Pull-based wrappers
# ---------------------------------------------------------------------------


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamDelta]:
    """Yield deltas from an async byte source until it ends or sends ``[DONE]``."""
    decoder = SSEStreamDecoder()
    async for chunk in chunks:
        for delta in decoder.feed(chunk):
            yield delta
        if decoder.done:
            break
    for delta in decoder.flush():
        yield delta


def iter_deltas(chunks: Iterable[bytes]) -> Iterator[StreamDelta]:
    """Synchronous counterpart of :func:`decode_stream`."""
    decoder = SSEStreamDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.done:
            break
    yield from decoder.flush()
