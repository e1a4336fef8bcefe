"""Deterministic text chunking with paragraph, sentence and hard splits.

Splits cleaned document text into bounded-size segments for retrieval.

The algorithm works in three tiers:

1. **Paragraphs** -- blank-line separated paragraphs are packed greedily
   into the current segment while ``len(current) + len(paragraph) + 2``
   stays within ``chunk_size``.
2. **Sentences** -- a paragraph longer than ``chunk_size`` is split at
   sentence boundaries (``.``, ``!`` or ``?`` followed by whitespace) and
   packed the same way, joined by single spaces.
3. **Hard split** -- a single sentence longer than ``chunk_size`` is cut
   into fixed ``chunk_size`` character slices.

After segmentation each segment except the first is prefixed with the last
``overlap`` characters of the previous (pre-overlap) segment and the
``" ... "`` separator.  Overlapped segments may therefore be up to
``overlap + 5`` characters longer than ``chunk_size``.

Identical input and parameters always produce identical output, so
re-ingesting a document yields the same chunk contents.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 500
DEFAULT_OVERLAP = 50
OVERLAP_SEPARATOR = " ... "

_PARAGRAPH_SEPARATOR = "\n\n"
_SENTENCE_SEPARATOR = " "

_BLANK_RUN = re.compile(r"\n{3,}")
_PARAGRAPH_SPLIT = re.compile(r"\n\n+")
# Zero-width split after terminal punctuation keeps the punctuation on the
# sentence and never drops trailing text without punctuation.
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def normalize_text(text: str) -> str:
    """Unify line endings, collapse 3+ newlines to one blank line, and trim."""
    unified = text.replace("\r\n", "\n").replace("\r", "\n")
    return _BLANK_RUN.sub(_PARAGRAPH_SEPARATOR, unified).strip()


class TextChunker:
    """Splits text into bounded, overlapping character windows.

    Parameters
    ----------
    chunk_size:
        Maximum length, in characters, of a segment before overlap is
        injected (default 500).
    overlap:
        Number of trailing characters of the previous segment copied to
        the front of the next one (default 50).  ``0`` disables overlap.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must not be negative, got {overlap}")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into overlapping segments.

        Empty or whitespace-only input returns an empty list.
        """
        segments = self.split(text)
        chunks = self.apply_overlap(segments)
        if chunks:
            logger.debug(
                "chunking_complete",
                num_chunks=len(chunks),
                chunk_size=self._chunk_size,
                overlap=self._overlap,
                input_chars=len(text),
            )
        return chunks

    def split(self, text: str) -> list[str]:
        """Return the pre-overlap segments of *text*.

        Every returned segment is at most ``chunk_size`` characters long.
        """
        if not text or not text.strip():
            return []

        paragraphs = _PARAGRAPH_SPLIT.split(normalize_text(text))
        return self._pack(
            (p.strip() for p in paragraphs),
            separator=_PARAGRAPH_SEPARATOR,
            split_oversized=self._split_long_paragraph,
        )

    def apply_overlap(self, segments: list[str]) -> list[str]:
        """Prefix each segment after the first with the tail of its predecessor."""
        if self._overlap <= 0 or len(segments) <= 1:
            return list(segments)

        overlapped = [segments[0]]
        for previous, segment in zip(segments, segments[1:]):
            overlapped.append(previous[-self._overlap :] + OVERLAP_SEPARATOR + segment)
        return overlapped

    # ------------------------------------------------------------------
    # Splitting tiers
    # ------------------------------------------------------------------

    def _split_long_paragraph(self, paragraph: str) -> list[str]:
        """Split a paragraph that exceeds ``chunk_size`` at sentence boundaries."""
        return self._pack(
            (s.strip() for s in _SENTENCE_SPLIT.split(paragraph)),
            separator=_SENTENCE_SEPARATOR,
            split_oversized=self._hard_split,
        )

    def _hard_split(self, sentence: str) -> list[str]:
        """Cut *sentence* into consecutive ``chunk_size`` slices."""
        size = self._chunk_size
        return [sentence[i : i + size] for i in range(0, len(sentence), size)]

    def _pack(self, units, separator: str, split_oversized) -> list[str]:  # noqa: ANN001
        """Greedily pack *units* into segments of at most ``chunk_size``.

        A unit that does not fit seals the current segment.  A unit that is
        itself longer than ``chunk_size`` is broken up by *split_oversized*;
        all its pieces but the last are emitted, and packing continues from
        the last piece.
        """
        segments: list[str] = []
        current = ""

        for unit in units:
            if not unit:
                continue

            if len(current) + len(unit) + len(separator) <= self._chunk_size:
                current = f"{current}{separator}{unit}" if current else unit
                continue

            if current:
                segments.append(current)

            if len(unit) > self._chunk_size:
                pieces = split_oversized(unit)
                segments.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""
            else:
                current = unit

        if current:
            segments.append(current)

        return segments


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Chunk *text* with a throwaway :class:`TextChunker`."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap).chunk(text)


def optimal_chunk_size(text_length: int, is_handout: bool) -> int:
    """Suggest a chunk size for a document of *text_length* characters.

    Handouts get larger chunks (400-800) to keep explanations together;
    past questions get smaller ones (200-400) so each question stays
    isolated.
    """
    if is_handout:
        return int(min(800, max(400, text_length / 10)))
    return int(min(400, max(200, text_length / 20)))
