"""Pydantic request/response schemas for the studyrag API.

Defines the public contract for all REST endpoints: upload, document
listing and status polling, retrieval, keyword search, question
answering, standalone chunking, and health.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# These Pydantic models define the *shape* of every HTTP request body
# and response body in the API.  FastAPI uses them for:
#
#   1. **Validation** — Incoming JSON is automatically validated against
#      the schema.  Invalid requests get a 422 error with details.
#   2. **Serialization** — Outgoing objects are converted to JSON
#      matching the schema (via response_model=...).
#   3. **Documentation** — FastAPI generates OpenAPI docs from these
#      schemas automatically (visible at /docs).
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".  Internal models (Document, ScoredChunk) are
# never returned directly, so stored text and vectors stay private
# unless an endpoint asks for them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.document import Chunk, Document, DocumentSummary
from src.models.rag import Answer, AnswerMode, RetrievalResult, ScoredChunk


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class UploadResponse(BaseModel):
    """Acknowledgement returned before ingestion starts."""

    document_id: str
    status: str = "processing"
    media_type: str
    filename: str


class DocumentResponse(BaseModel):
    """Document metadata without its text."""

    document_id: str
    original_name: str
    media_type: str
    mime_type: str
    source_category: str
    course_code: str | None = None
    size_bytes: int
    status: str
    confidence: str
    error: str | None = None
    chunk_count: int = 0
    created_at: datetime
    processed_at: datetime | None = None

    @classmethod
    def from_document(cls, document: Document, chunk_count: int = 0) -> DocumentResponse:
        return cls(
            document_id=document.document_id,
            original_name=document.original_name,
            media_type=document.media_type.value,
            mime_type=document.mime_type,
            source_category=document.source_category.value,
            course_code=document.course_code,
            size_bytes=document.size_bytes,
            status=document.status.value,
            confidence=document.confidence.value,
            error=document.error,
            chunk_count=chunk_count,
            created_at=document.created_at,
            processed_at=document.processed_at,
        )

    @classmethod
    def from_summary(cls, summary: DocumentSummary) -> DocumentResponse:
        return cls.from_document(summary.document, chunk_count=summary.chunk_count)


class ChunkResponse(BaseModel):
    """A stored chunk as shown in document detail (vector omitted)."""

    chunk_id: str
    chunk_index: int
    content: str
    has_vector: bool

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> ChunkResponse:
        return cls(
            chunk_id=chunk.chunk_id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            has_vector=chunk.has_vector,
        )


class DocumentDetailResponse(DocumentResponse):
    """Full document view: extracted text and every chunk."""

    raw_text: str = ""
    cleaned_text: str = ""
    chunks: list[ChunkResponse] = Field(default_factory=list)


class DocumentListResponse(BaseModel):
    """All documents, newest first."""

    documents: list[DocumentResponse]
    total: int


class StatusResponse(BaseModel):
    """Ingestion progress for one document.

    ``status`` is the live pipeline stage while the document is in flight,
    otherwise the persisted terminal state.
    """

    document_id: str
    status: str
    confidence: str
    message: str = ""
    processed_at: datetime | None = None


class DeleteResponse(BaseModel):
    """Confirmation of a document deletion."""

    document_id: str
    deleted: bool = True


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


class RetrieveRequest(BaseModel):
    """Query for vector retrieval (keyword fallback when unusable)."""

    query: str = Field(..., min_length=1, max_length=2000)
    course_code: str | None = None
    top_k: int | None = Field(default=None, ge=1, le=50)


class KeywordSearchRequest(BaseModel):
    """Query for keyword-only search."""

    query: str = Field(..., min_length=1, max_length=2000)
    course_code: str | None = None
    limit: int | None = Field(default=None, ge=1, le=50)


class ScoredChunkResponse(BaseModel):
    """One ranked hit."""

    chunk_id: str
    document_id: str
    chunk_index: int
    content: str
    score: float
    confidence: str

    @classmethod
    def from_scored(cls, chunk: ScoredChunk) -> ScoredChunkResponse:
        return cls(
            chunk_id=chunk.chunk_id,
            document_id=chunk.document_id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            score=chunk.score,
            confidence=chunk.confidence.value,
        )


class RetrieveResponse(BaseModel):
    """Ranked chunks, their aggregate confidence, and a ready context block."""

    chunks: list[ScoredChunkResponse]
    confidence: str
    strategy: str
    context: str
    sources: list[dict[str, str]] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RetrievalResult) -> RetrieveResponse:
        return cls(
            chunks=[ScoredChunkResponse.from_scored(c) for c in result.chunks],
            confidence=result.confidence.value,
            strategy=result.strategy.value,
            context=result.build_context(),
            sources=result.sources(),
        )


class KeywordSearchResponse(BaseModel):
    """Keyword hits; always LOW confidence."""

    chunks: list[ScoredChunkResponse]
    confidence: str = "low"


# ---------------------------------------------------------------------------
# Question answering
# ---------------------------------------------------------------------------


class AskRequest(BaseModel):
    """A question to answer from the uploaded material."""

    question: str = Field(..., min_length=1, max_length=2000)
    course_code: str | None = None
    mode: AnswerMode = AnswerMode.EXAM
    top_k: int | None = Field(default=None, ge=1, le=50)


class AskResponse(BaseModel):
    """Generated answer with the citations it was grounded on."""

    question: str
    answer: str
    mode: str
    confidence: str
    strategy: str
    context_used: bool
    sources: list[dict[str, str]] = Field(default_factory=list)

    @classmethod
    def from_answer(cls, answer: Answer) -> AskResponse:
        return cls(
            question=answer.question,
            answer=answer.answer,
            mode=answer.mode.value,
            confidence=answer.confidence.value,
            strategy=answer.strategy.value,
            context_used=answer.context_used,
            sources=answer.sources,
        )


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------


class ChunkRequest(BaseModel):
    """Text to split with the standalone chunker."""

    text: str
    chunk_size: int | None = Field(default=None, ge=1)
    overlap: int | None = Field(default=None, ge=0)


class ChunkTextResponse(BaseModel):
    """Chunker output in ordinal order."""

    chunks: list[str]
    count: int
    chunk_size: int
    overlap: int


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
