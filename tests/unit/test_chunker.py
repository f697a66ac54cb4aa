"""Unit tests for the TextChunker: paragraph-bounded and fixed-window chunking."""

from __future__ import annotations

import pytest

from venturelens.services.ingestion.chunker import ChunkMode, TextChunker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sentence(n: int) -> str:
    return f"Sentence number {n} talks about a startup that raised a seed round."


def _paragraph(first: int, count: int) -> str:
    return " ".join(_sentence(i) for i in range(first, first + count))


_MIXED_TEXT = "\n\n".join(
    [
        _paragraph(0, 2),
        _paragraph(10, 12),
        "Short.",
        _paragraph(30, 1),
        "A" * 700,
        _paragraph(40, 3),
    ]
)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_chars=0)

    @pytest.mark.parametrize("overlap", [-1, 100, 150])
    def test_rejects_overlap_outside_window(self, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(max_chars=100, overlap=overlap)

    def test_empty_input_yields_nothing(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk("") == []
        assert chunker.chunk("   \n\n  ", ChunkMode.WINDOW) == []


# ---------------------------------------------------------------------------
# Paragraph mode
# ---------------------------------------------------------------------------


class TestParagraphMode:
    def test_small_paragraphs_are_packed_together(self) -> None:
        text = "\n\n".join(_paragraph(i * 10, 1) for i in range(3))
        chunks = TextChunker(max_chars=1000, min_chars=10).chunk(text)

        assert chunks == ["\n\n".join(_paragraph(i * 10, 1) for i in range(3))]

    def test_oversized_middle_paragraph_is_split_at_sentences(self) -> None:
        first = _paragraph(0, 2)
        middle = _paragraph(10, 8)
        last = _paragraph(30, 2)
        max_chars = 300
        assert len(middle) > max_chars
        assert len(first) + len(last) + 2 < max_chars

        chunks = TextChunker(max_chars=max_chars, min_chars=10).chunk(
            "\n\n".join([first, middle, last])
        )

        assert len(chunks) >= 3
        assert chunks[0] == first
        assert chunks[-1] == last
        middle_chunks = chunks[1:-1]
        assert " ".join(middle_chunks) == middle
        for piece in middle_chunks:
            assert piece.endswith(".")
            assert len(piece) <= max_chars

    def test_single_long_sentence_is_emitted_whole(self) -> None:
        sentence = "word " * 100 + "end"
        chunks = TextChunker(max_chars=120, min_chars=10).chunk(f"Intro paragraph here.\n\n{sentence}")

        assert chunks[-1] == sentence.strip()
        assert len(chunks[-1]) > 120

    def test_abbreviations_do_not_end_sentences(self) -> None:
        text = (
            "Acme Pvt. Ltd. raised money from Dr. Rao and friends in the first close. "
            "The second close followed a month later with more investors."
        )
        chunks = TextChunker(max_chars=90, min_chars=10).chunk(text)

        assert chunks[0].startswith("Acme Pvt. Ltd. raised money from Dr. Rao")

    def test_floor_and_bound_hold_for_mixed_text(self) -> None:
        chunker = TextChunker(max_chars=400, min_chars=50)
        chunks = chunker.chunk(_MIXED_TEXT)

        assert chunks
        for chunk in chunks:
            assert len(chunk.strip()) >= 50
            # Only a lone unsplittable sentence may exceed the limit.
            assert len(chunk) <= 400 or chunk == "A" * 700

    def test_fragments_below_floor_are_dropped(self) -> None:
        text = "Tiny.\n\n" + "x" * 30
        assert TextChunker(max_chars=10, min_chars=50).chunk(text) == []

    def test_is_deterministic(self) -> None:
        chunker = TextChunker(max_chars=250, min_chars=20)
        assert chunker.chunk(_MIXED_TEXT) == chunker.chunk(_MIXED_TEXT)
        assert list(chunker.iter_paragraphs(_MIXED_TEXT)) == chunker.chunk(_MIXED_TEXT)


# ---------------------------------------------------------------------------
# Window mode
# ---------------------------------------------------------------------------


class TestWindowMode:
    def test_consecutive_windows_share_overlap(self) -> None:
        text = " ".join(f"token{i:03d}" for i in range(200))
        chunker = TextChunker(max_chars=100, overlap=20, min_chars=10)
        chunks = chunker.chunk(text, ChunkMode.WINDOW)

        assert len(chunks) > 2
        for chunk in chunks:
            assert len(chunk) <= 100
        assert chunks[0][-20:].strip() in chunks[1]

    def test_whitespace_is_normalized(self) -> None:
        text = "alpha   beta\n\n\tgamma " * 20
        chunks = TextChunker(max_chars=500, min_chars=10).chunk(text, ChunkMode.WINDOW)

        assert chunks == [" ".join(text.split())]

    def test_window_sequence_covers_whole_text_once(self) -> None:
        text = "abcdefghij" * 25  # 250 chars
        chunks = TextChunker(max_chars=100, overlap=50, min_chars=1).chunk(text, ChunkMode.WINDOW)

        # Steps of 50: 0, 50, 100, 150 (the window at 150 reaches the end).
        assert len(chunks) == 4
        assert chunks[-1] == text[150:]

    def test_short_tail_window_below_floor_is_dropped(self) -> None:
        text = "x" * 130
        chunks = TextChunker(max_chars=100, overlap=0, min_chars=50).chunk(text, ChunkMode.WINDOW)

        assert chunks == ["x" * 100]

    def test_floor_holds(self) -> None:
        chunks = TextChunker(max_chars=80, overlap=30, min_chars=40).chunk(
            _MIXED_TEXT, ChunkMode.WINDOW
        )
        assert all(len(c.strip()) >= 40 and len(c) <= 80 for c in chunks)
