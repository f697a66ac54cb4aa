"""Text chunking for the knowledge base.

Two strategies are offered, matching the two ingestion paths:

1. **Paragraph-bounded** (crawled pages and ingested web content) -- chunk
   boundaries align with blank lines.  Paragraphs are packed greedily into a
   buffer until the next one would overflow the size limit.  A paragraph that
   is too long on its own is split at sentence boundaries and packed the same
   way.  A single sentence longer than the limit is emitted whole.

2. **Fixed-window** (uploaded documents) -- whitespace is normalized and a
   window of ``size`` characters slides across the text in steps of
   ``size - overlap``, so consecutive chunks share an overlap region.

Both strategies drop fragments whose trimmed length is below the configured
floor.  They are plain generators: calling them again with the same input
yields the same sequence.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Abbreviations that should NOT end a sentence: "Acme Inc. raised" stays whole.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Jr",
        "Sr",
        "St",
        "Inc",
        "Ltd",
        "Corp",
        "Co",
        "Pvt",
        "Rs",
        "vs",
        "etc",
        "approx",
        "No",
    }
)
_ABBREVIATION_PATTERN = re.compile(r"\b(" + "|".join(sorted(_ABBREVIATIONS)) + r")\.")
_SENTENCE_END = re.compile(r"[.!?](?=\s)")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_PARAGRAPH_JOINER = "\n\n"


class ChunkMode(str, Enum):  # noqa: UP042
    PARAGRAPH = "paragraph"
    WINDOW = "window"


class TextChunker:
    """Splits text into bounded-size chunks.

    Parameters
    ----------
    max_chars:
        Maximum chunk length in characters for paragraph mode, and the
        window size for fixed-window mode.
    overlap:
        Characters shared by consecutive windows in fixed-window mode.
        Ignored by paragraph mode.
    min_chars:
        Chunks whose trimmed length is below this are discarded.
    """

    def __init__(self, max_chars: int = 1000, overlap: int = 0, min_chars: int = 50) -> None:
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        if not 0 <= overlap < max_chars:
            raise ValueError("overlap must be non-negative and smaller than max_chars")
        self._max_chars = max_chars
        self._overlap = overlap
        self._min_chars = min_chars

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, mode: ChunkMode = ChunkMode.PARAGRAPH) -> list[str]:
        """Split *text* into chunks using *mode*.

        Returns
        -------
        list[str]
            Chunks in reading order.  Empty or whitespace-only input
            returns an empty list.
        """
        if not text or not text.strip():
            return []

        if mode is ChunkMode.WINDOW:
            chunks = list(self.iter_windows(text))
        else:
            chunks = list(self.iter_paragraphs(text))

        logger.debug(
            "chunking_complete",
            mode=mode.value,
            num_chunks=len(chunks),
            input_chars=len(text),
        )
        return chunks

    def iter_paragraphs(self, text: str) -> Iterator[str]:
        """Yield paragraph-bounded chunks of at most ``max_chars`` characters."""
        for candidate in self._accumulate(_split_paragraphs(text), _PARAGRAPH_JOINER):
            if len(candidate.strip()) >= self._min_chars:
                yield candidate

    def iter_windows(self, text: str) -> Iterator[str]:
        """Yield overlapping fixed-size windows over whitespace-normalized text."""
        normalized = " ".join(text.split())
        step = self._max_chars - self._overlap

        for start in range(0, len(normalized), step):
            window = normalized[start : start + self._max_chars].strip()
            if len(window) >= self._min_chars:
                yield window
            # The window reached the end; any later window is a suffix of it.
            if start + self._max_chars >= len(normalized):
                break

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _accumulate(self, parts: list[str], joiner: str) -> Iterator[str]:
        """Greedily pack *parts* into chunks no longer than ``max_chars``.

        A part that alone exceeds the limit flushes the buffer and is split
        at sentence boundaries; a sentence that still exceeds the limit is
        yielded as its own chunk.
        """
        buffer = ""
        for part in parts:
            if len(part) > self._max_chars:
                if buffer:
                    yield buffer
                    buffer = ""
                sentences = _split_sentences(part)
                if len(sentences) == 1:
                    yield part
                else:
                    yield from self._accumulate(sentences, " ")
                continue

            if buffer and len(buffer) + len(joiner) + len(part) > self._max_chars:
                yield buffer
                buffer = ""

            buffer = f"{buffer}{joiner}{part}" if buffer else part

        if buffer:
            yield buffer


# ---------------------------------------------------------------------------
# Paragraph / sentence splitting
# ---------------------------------------------------------------------------


def _split_paragraphs(text: str) -> list[str]:
    """Split *text* on blank lines, discarding blanks."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def _split_sentences(text: str) -> list[str]:
    """Split *text* after ``.``, ``!`` or ``?`` followed by whitespace.

    Periods after known abbreviations are masked first so they do not end a
    sentence.  The mask keeps string length unchanged, so offsets found in
    the masked text index the original.
    """
    masked = _ABBREVIATION_PATTERN.sub(lambda m: f"{m.group(1)}\x00", text)

    sentences: list[str] = []
    last = 0
    for match in _SENTENCE_END.finditer(masked):
        end = match.end()
        sentence = text[last:end].strip()
        if sentence:
            sentences.append(sentence)
        last = end

    remainder = text[last:].strip()
    if remainder:
        sentences.append(remainder)

    return sentences or [text]
