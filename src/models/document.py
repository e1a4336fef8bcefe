"""Document and chunk models for the study-material index.

Defines Pydantic v2 models for uploaded course materials and the
retrievable text segments derived from them.  All models are frozen;
state changes produce new instances via ``model_copy(update={...})``.

Ownership: a :class:`Document` exclusively owns its :class:`Chunk` rows.
Deleting a document deletes its chunks; chunks are never edited after the
ingestion pipeline writes them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.utils.confidence import ConfidenceLevel


class MediaType(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Extraction family selected from the upload's MIME type."""

    PDF = "pdf"
    IMAGE = "image"
    AUDIO = "audio"
    UNKNOWN = "unknown"

    @property
    def is_lossy(self) -> bool:
        """OCR and speech-to-text produce noisy text that benefits from cleanup."""
        return self in (MediaType.IMAGE, MediaType.AUDIO)


class SourceCategory(str, Enum):  # noqa: UP042
    """What kind of course material the uploader says this is."""

    HANDOUT = "handout"
    PAST_QUESTION = "past-question"
    OTHER = "other"


class IngestionStatus(str, Enum):  # noqa: UP042
    """States of the per-document ingestion state machine.

    PENDING → EXTRACTING → (CLEANING) → CHUNKING → EMBEDDING → DONE,
    with FAILED reachable from any step.
    """

    PENDING = "pending"
    EXTRACTING = "extracting"
    CLEANING = "cleaning"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (IngestionStatus.DONE, IngestionStatus.FAILED)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Document — one uploaded source file.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """An uploaded source file and the text extracted from it.

    Created at upload time with empty text and ``PENDING`` status; written
    once more by the ingestion pipeline when it reaches a terminal state.
    A document that failed extraction is ``FAILED`` with empty text and LOW
    confidence, which callers must read as "processed, nothing usable"
    rather than "still processing".
    """

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Unique identifier (UUID) of the document.")
    media_type: MediaType = Field(description="Extraction family for the stored file.")
    mime_type: str = Field(default="", description="MIME type declared at upload.")
    source_category: SourceCategory = Field(default=SourceCategory.HANDOUT)
    course_code: str | None = Field(
        default=None,
        description="Course the material belongs to, e.g. 'CSC201'. Used as the scope filter.",
    )
    owner_id: str | None = Field(default=None, description="Identifier of the uploading user.")
    filename: str = Field(default="", description="Name of the stored file on disk.")
    original_name: str = Field(default="", description="File name as uploaded.")
    size_bytes: int = Field(default=0, ge=0)
    raw_text: str = Field(default="", description="Text exactly as the extractor returned it.")
    cleaned_text: str = Field(
        default="",
        description="Text after optional AI cleanup (equals raw_text when cleanup is skipped).",
    )
    confidence: ConfidenceLevel = Field(default=ConfidenceLevel.LOW)
    status: IngestionStatus = Field(default=IngestionStatus.PENDING)
    error: str | None = Field(default=None, description="Reason for a FAILED status.")
    created_at: datetime = Field(default_factory=_utcnow)
    processed_at: datetime | None = Field(default=None)


# ---------------------------------------------------------------------------
# Chunk — the unit of retrieval.
# ---------------------------------------------------------------------------
class Chunk(BaseModel):
    """One retrievable text segment of a document.

    ``chunk_index`` is dense and 0-based per document.  ``content`` includes
    the overlap prefix injected by the chunker.  ``embedding`` is ``None``
    when vectorization failed; such chunks are skipped by vector retrieval
    but still found by keyword search.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (UUID) of this chunk.")
    document_id: str = Field(description="Identifier of the owning document.")
    chunk_index: int = Field(ge=0, description="0-based ordinal within the document.")
    content: str = Field(description="Chunk text including injected overlap context.")
    embedding: list[float] | None = Field(
        default=None,
        description="Fixed-length embedding vector, or None if vectorization failed.",
    )

    @property
    def has_vector(self) -> bool:
        return self.embedding is not None


class CandidateChunk(BaseModel):
    """A chunk joined with the parent-document fields retrieval needs."""

    model_config = ConfigDict(frozen=True)

    chunk: Chunk
    document_confidence: ConfidenceLevel = ConfidenceLevel.LOW
    course_code: str | None = None


class DocumentSummary(BaseModel):
    """Listing row: a document plus how many chunks it owns."""

    model_config = ConfigDict(frozen=True)

    document: Document
    chunk_count: int = Field(default=0, ge=0)
