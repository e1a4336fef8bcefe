"""FastAPI route definitions for the studyrag REST API.

Exposes endpoints for uploading course material, listing and inspecting
documents, polling ingestion status, retrieval, keyword search, question
answering, standalone chunking, and health checks.  Service dependencies are resolved from
``app.state`` via FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/documents                     POST    Upload file → 202, ingest in background
# /api/v1/documents                     GET     List documents (newest first)
# /api/v1/documents/{id}                GET     Document detail with text + chunks
# /api/v1/documents/{id}/status         GET     Poll ingestion progress
# /api/v1/documents/{id}                DELETE  Delete document, chunks and file
# /api/v1/retrieve                      POST    Vector retrieval (keyword fallback)
# /api/v1/search/keyword                POST    Keyword-only search
# /api/v1/ask                           POST    Answer a question from the material
# /api/v1/chunk                         POST    Run the chunker on raw text
# /api/v1/health                        GET     Health check + provider status
#
# DEPENDENCY INJECTION PATTERN:
# Each route function declares its dependencies as type-annotated params.
# FastAPI resolves these via Depends() which calls helper functions that
# read from app.state (populated at startup in main.py's _lifespan).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, UploadFile

from src.api.schemas import (
    AskRequest,
    AskResponse,
    ChunkRequest,
    ChunkResponse,
    ChunkTextResponse,
    DeleteResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    KeywordSearchRequest,
    KeywordSearchResponse,
    RetrieveRequest,
    RetrieveResponse,
    ScoredChunkResponse,
    StatusResponse,
    UploadResponse,
)
from src.config.settings import Settings
from src.interfaces.document_store import IDocumentStore
from src.models.document import Document, SourceCategory
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.extractor_registry import ExtractorRegistry
from src.services.ingestion.task_queue import IngestionQueue
from src.services.ingestion.tracker import IngestionTracker
from src.services.qa_service import QAService
from src.services.retrieval_service import RetrievalService
from src.utils.logging import get_logger
from src.utils.media_types import detect_media_type, extension_for, is_allowed

_logger: structlog.BoundLogger = get_logger(__name__)

# All routes in this file are prefixed with /api/v1.
router = APIRouter(prefix="/api/v1")

# Uploads are read in 64 KB increments so oversized files are rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency helpers — pull shared instances from app.state
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_store(request: Request) -> IDocumentStore:
    return request.app.state.document_store


def _get_queue(request: Request) -> IngestionQueue:
    return request.app.state.ingestion_queue


def _get_tracker(request: Request) -> IngestionTracker:
    return request.app.state.ingestion_tracker


def _get_retrieval(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_chunker(request: Request) -> TextChunker:
    return request.app.state.chunker


def _get_qa(request: Request) -> QAService:
    return request.app.state.qa_service


SettingsDep = Annotated[Settings, Depends(_get_settings)]
StoreDep = Annotated[IDocumentStore, Depends(_get_store)]
QueueDep = Annotated[IngestionQueue, Depends(_get_queue)]
TrackerDep = Annotated[IngestionTracker, Depends(_get_tracker)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval)]
ChunkerDep = Annotated[TextChunker, Depends(_get_chunker)]
QADep = Annotated[QAService, Depends(_get_qa)]


def _normalize_mime(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


async def _read_limited(file: UploadFile, max_bytes: int) -> bytes:
    """Read *file* fully, raising 413 as soon as it exceeds *max_bytes*."""
    parts: list[bytes] = []
    total = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total += len(part)
        if total > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {max_bytes} bytes.",
            )
        parts.append(part)
    return b"".join(parts)


def _write_upload(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def _require_document(store: IDocumentStore, document_id: str) -> Document:
    document = await store.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return document


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=UploadResponse,
    status_code=202,
    responses={413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}},
    summary="Upload a document for background ingestion",
)
async def upload_document(
    file: UploadFile,
    store: StoreDep,
    queue: QueueDep,
    settings: SettingsDep,
    course_code: Annotated[str | None, Form()] = None,
    source_category: Annotated[SourceCategory, Form()] = SourceCategory.HANDOUT,
    owner_id: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    """Store the upload, create its document record, and queue ingestion.

    Returns before any extraction happens; poll the status endpoint for
    progress.
    """
    mime_type = _normalize_mime(file.content_type)
    if not is_allowed(mime_type):
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {mime_type or 'unknown'}.",
        )

    data = await _read_limited(file, settings.max_upload_bytes)

    document_id = str(uuid.uuid4())
    media_type = detect_media_type(mime_type)
    filename = f"{document_id}{extension_for(mime_type)}"
    path = Path(settings.upload_dir) / filename
    await asyncio.to_thread(_write_upload, path, data)

    document = Document(
        document_id=document_id,
        media_type=media_type,
        mime_type=mime_type,
        source_category=source_category,
        course_code=course_code or None,
        owner_id=owner_id or None,
        filename=filename,
        original_name=file.filename or filename,
        size_bytes=len(data),
    )
    await store.create_document(document)
    queue.submit(document_id, str(path), media_type)

    _logger.info(
        "document_uploaded",
        document_id=document_id,
        media_type=media_type.value,
        size_bytes=len(data),
        course_code=document.course_code,
    )
    return UploadResponse(
        document_id=document_id,
        media_type=media_type.value,
        filename=document.original_name,
    )


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List uploaded documents",
)
async def list_documents(
    store: StoreDep,
    course_code: Annotated[str | None, Query()] = None,
) -> DocumentListResponse:
    """List documents newest first, optionally scoped to one course."""
    summaries = await store.list_documents(course_code=course_code)
    documents = [DocumentResponse.from_summary(s) for s in summaries]
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a document with its text and chunks",
)
async def get_document(document_id: str, store: StoreDep) -> DocumentDetailResponse:
    document = await _require_document(store, document_id)
    chunks = await store.get_chunks(document_id)
    base = DocumentResponse.from_document(document, chunk_count=len(chunks))
    return DocumentDetailResponse(
        **base.model_dump(),
        raw_text=document.raw_text,
        cleaned_text=document.cleaned_text,
        chunks=[ChunkResponse.from_chunk(c) for c in chunks],
    )


@router.get(
    "/documents/{document_id}/status",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Poll ingestion progress",
)
async def get_document_status(
    document_id: str,
    store: StoreDep,
    tracker: TrackerDep,
) -> StatusResponse:
    """Return the live pipeline stage while in flight, else the persisted state.

    The tracker drops a document once it reaches DONE or FAILED, so any
    tracked entry is newer than what the store holds.
    """
    document = await _require_document(store, document_id)

    live = tracker.get_status(document_id)
    if live is not None:
        return StatusResponse(
            document_id=document_id,
            status=live["status"],
            confidence=document.confidence.value,
            message=live["message"],
        )

    return StatusResponse(
        document_id=document_id,
        status=document.status.value,
        confidence=document.confidence.value,
        message=document.error or "",
        processed_at=document.processed_at,
    )


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document, its chunks and its stored file",
)
async def delete_document(
    document_id: str,
    store: StoreDep,
    tracker: TrackerDep,
    settings: SettingsDep,
) -> DeleteResponse:
    document = await _require_document(store, document_id)
    deleted = await store.delete_document(document_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")

    tracker.forget(document_id)
    if document.filename:
        path = Path(settings.upload_dir) / document.filename
        await asyncio.to_thread(path.unlink, missing_ok=True)

    _logger.info("document_deleted", document_id=document_id)
    return DeleteResponse(document_id=document_id)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@router.post(
    "/retrieve",
    response_model=RetrieveResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Retrieve the chunks most relevant to a query",
)
async def retrieve(body: RetrieveRequest, retrieval: RetrievalDep) -> RetrieveResponse:
    """Vector retrieval, falling back to keyword search when it yields nothing."""
    result = await retrieval.search(
        body.query,
        course_code=body.course_code,
        top_k=body.top_k,
    )
    return RetrieveResponse.from_result(result)


@router.post(
    "/search/keyword",
    response_model=KeywordSearchResponse,
    summary="Keyword search over all chunks",
)
async def keyword_search(
    body: KeywordSearchRequest,
    retrieval: RetrievalDep,
) -> KeywordSearchResponse:
    chunks = await retrieval.keyword_search(
        body.query,
        course_code=body.course_code,
        limit=body.limit,
    )
    return KeywordSearchResponse(chunks=[ScoredChunkResponse.from_scored(c) for c in chunks])


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Answer a question from the uploaded material",
)
async def ask(body: AskRequest, qa: QADep) -> AskResponse:
    """Retrieve context, generate an answer and return it with its sources.

    502 when no LLM is configured or the completion fails.
    """
    try:
        answer = await qa.ask(
            body.question,
            course_code=body.course_code,
            mode=body.mode,
            top_k=body.top_k,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return AskResponse.from_answer(answer)


@router.post(
    "/chunk",
    response_model=ChunkTextResponse,
    summary="Split text with the chunker",
)
async def chunk_text(body: ChunkRequest, chunker: ChunkerDep) -> ChunkTextResponse:
    """Run the chunker without storing anything.

    Omitted parameters fall back to the configured chunk size and overlap.
    """
    size = body.chunk_size if body.chunk_size is not None else chunker.chunk_size
    overlap = body.overlap if body.overlap is not None else chunker.overlap
    try:
        active = TextChunker(chunk_size=size, overlap=overlap)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    chunks = active.chunk(body.text)
    return ChunkTextResponse(
        chunks=chunks,
        count=len(chunks),
        chunk_size=size,
        overlap=overlap,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability.

    ``unhealthy`` when the store cannot be read; ``degraded`` when an
    extractor is unavailable or cleanup is not configured.
    """
    providers: dict[str, Any] = {}

    store: IDocumentStore = request.app.state.document_store
    try:
        summaries = await store.list_documents()
        providers["store"] = True
        providers["documents"] = len(summaries)
    except Exception as exc:
        _logger.warning("health_store_check_failed", error=str(exc))
        providers["store"] = False
        providers["documents"] = 0

    extractors: ExtractorRegistry = request.app.state.extractor_registry
    extractor_status = {
        media_type.value: extractors.get(media_type).is_available()
        for media_type in extractors.supported_types()
    }
    providers["extractors"] = extractor_status

    embedder = request.app.state.embedding_provider
    providers["embedding"] = embedder.get_provider_name()
    providers["cleanup"] = request.app.state.cleanup_service.enabled
    providers["answering"] = request.app.state.qa_service.enabled

    if not providers["store"]:
        status = "unhealthy"
    elif all(extractor_status.values()) and providers["cleanup"]:
        status = "healthy"
    else:
        status = "degraded"

    return HealthResponse(status=status, version=_VERSION, providers=providers)
