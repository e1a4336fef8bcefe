"""Unit tests for the TextChunker — paragraph, sentence and hard splits with overlap."""

from __future__ import annotations

import pytest

from src.services.ingestion.chunker import (
    OVERLAP_SEPARATOR,
    TextChunker,
    chunk_text,
    normalize_text,
    optimal_chunk_size,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_chunker(chunk_size: int = 500, overlap: int = 0) -> TextChunker:
    """Build a TextChunker with a predictable configuration."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestEmptyInput:
    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t\n"])
    def test_blank_text_gives_no_chunks(self, text: str) -> None:
        assert _make_chunker().chunk(text) == []


class TestNormalization:
    def test_line_endings_and_blank_runs(self) -> None:
        assert normalize_text("a\r\nb\n\n\n\nc\r") == "a\nb\n\nc"

    def test_short_text_is_single_normalized_chunk(self) -> None:
        chunks = _make_chunker().chunk("  Short note.\r\n\r\n\r\nSecond line.  ")
        assert chunks == ["Short note.\n\nSecond line."]


class TestParagraphPacking:
    def test_paragraphs_packed_until_limit(self) -> None:
        text = "\n\n".join(["a" * 200, "b" * 200, "c" * 200])
        segments = _make_chunker(chunk_size=500).split(text)

        assert segments == ["a" * 200 + "\n\n" + "b" * 200, "c" * 200]

    def test_no_segment_exceeds_chunk_size(self, sample_handout_text: str) -> None:
        segments = _make_chunker(chunk_size=200).split(sample_handout_text)

        assert len(segments) > 1
        assert all(len(s) <= 200 for s in segments)

    def test_chunk_count_decreases_with_larger_size(self, sample_handout_text: str) -> None:
        small = _make_chunker(chunk_size=150).chunk(sample_handout_text)
        large = _make_chunker(chunk_size=1000).chunk(sample_handout_text)

        assert len(small) > len(large)


class TestSentenceSplitting:
    def test_long_paragraph_split_at_sentence_boundaries(self) -> None:
        text = "This is sentence one. This is sentence two. This is sentence three."
        segments = _make_chunker(chunk_size=50).split(text)

        assert segments == [
            "This is sentence one. This is sentence two.",
            "This is sentence three.",
        ]

    def test_trailing_text_without_punctuation_is_kept(self) -> None:
        text = "First full sentence here. and then a fragment without a stop"
        segments = _make_chunker(chunk_size=40).split(text)

        assert segments == [
            "First full sentence here.",
            "and then a fragment without a stop",
        ]


class TestHardSplit:
    def test_unbroken_text_cut_into_fixed_slices(self) -> None:
        text = "abcdefghijklmnopqrstuvwxy"
        segments = _make_chunker(chunk_size=10).split(text)

        assert segments == ["abcdefghij", "klmnopqrst", "uvwxy"]


class TestOverlap:
    def test_overlap_prefixes_tail_of_previous_segment(self) -> None:
        text = "\n\n".join(["a" * 200, "b" * 200, "c" * 200])
        chunks = _make_chunker(chunk_size=500, overlap=10).chunk(text)

        assert len(chunks) == 2
        assert chunks[0] == "a" * 200 + "\n\n" + "b" * 200
        assert chunks[1] == "b" * 10 + OVERLAP_SEPARATOR + "c" * 200

    def test_overlap_uses_pre_overlap_segment(self) -> None:
        chunker = _make_chunker(chunk_size=10, overlap=3)
        chunks = chunker.chunk("abcdefghijklmnopqrstuvwxy")

        assert chunks == [
            "abcdefghij",
            "hij" + OVERLAP_SEPARATOR + "klmnopqrst",
            "rst" + OVERLAP_SEPARATOR + "uvwxy",
        ]

    def test_zero_overlap_returns_plain_segments(self, sample_handout_text: str) -> None:
        chunker = _make_chunker(chunk_size=200, overlap=0)
        assert chunker.chunk(sample_handout_text) == chunker.split(sample_handout_text)

    def test_overlapped_chunk_length_bound(self, sample_handout_text: str) -> None:
        chunks = _make_chunker(chunk_size=200, overlap=40).chunk(sample_handout_text)
        assert all(len(c) <= 200 + 40 + len(OVERLAP_SEPARATOR) for c in chunks)


class TestDeterminism:
    def test_same_input_same_output(self, sample_handout_text: str) -> None:
        first = chunk_text(sample_handout_text, chunk_size=180, overlap=30)
        second = chunk_text(sample_handout_text, chunk_size=180, overlap=30)

        assert first == second
        assert first == TextChunker(180, 30).chunk(sample_handout_text)


class TestValidation:
    def test_rejects_non_positive_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=0)

    def test_rejects_negative_overlap(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, overlap=-1)


class TestOptimalChunkSize:
    @pytest.mark.parametrize(
        ("length", "expected"),
        [(1_000, 400), (6_000, 600), (50_000, 800)],
    )
    def test_handout_sizes(self, length: int, expected: int) -> None:
        assert optimal_chunk_size(length, is_handout=True) == expected

    @pytest.mark.parametrize(
        ("length", "expected"),
        [(1_000, 200), (6_000, 300), (50_000, 400)],
    )
    def test_past_question_sizes(self, length: int, expected: int) -> None:
        assert optimal_chunk_size(length, is_handout=False) == expected
