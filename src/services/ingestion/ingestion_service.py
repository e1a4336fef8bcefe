"""Orchestrator for the per-document ingestion pipeline.

Pipeline stages: **extract -> (clean) -> chunk -> embed -> store**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the extractor registry, the cleanup service, the chunker, the
embedding provider and the document store without any of them knowing
about each other.  Every document moves through a small state machine::

    PENDING → EXTRACTING → (CLEANING) → CHUNKING → EMBEDDING → DONE
                  └──────────────┴────────────┴──────────┴──→ FAILED

Failure handling is graded by where the failure happens:

* extraction failure or unsupported media type -- FAILED, empty text, LOW;
* empty extraction -- DONE with empty text, LOW and no chunks;
* cleanup failure -- raw text is kept with its lower confidence;
* vectorization failure for one chunk -- that chunk is stored without a
  vector and the rest carry on;
* anything else -- caught at the top, the text computed so far is stored
  as FAILED with LOW confidence.

Nothing is raised to the caller.  The document record is written once, at
the terminal state; intermediate states are visible through the
:class:`IngestionTracker`.  Chunks are always replaced wholesale, so
re-ingesting a document never duplicates rows.

All dependencies are injected via the constructor, so providers can be
swapped (e.g. hash vectors -> OpenAI embeddings) without changing this
class.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone

import structlog

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.document import (
    Chunk,
    Document,
    IngestionStatus,
    MediaType,
    SourceCategory,
)
from src.models.rag import IngestionResult
from src.services.ingestion.chunker import TextChunker, optimal_chunk_size
from src.services.ingestion.extractor_registry import ExtractorRegistry
from src.services.ingestion.tracker import IngestionTracker
from src.services.text_cleanup import CleanupResult, TextCleanupService
from src.utils.concurrency import throttled_gather
from src.utils.confidence import ConfidenceLevel
from src.utils.errors import ExtractionError, StudyRAGError
from src.utils.logging import document_context

logger = structlog.get_logger(logger_name=__name__)

# Confidence assigned straight after extraction, before any cleanup.
_EXTRACTION_CONFIDENCE: dict[MediaType, ConfidenceLevel] = {
    MediaType.PDF: ConfidenceLevel.MEDIUM,
    MediaType.IMAGE: ConfidenceLevel.LOW,
    MediaType.AUDIO: ConfidenceLevel.LOW,
}


def extraction_confidence(media_type: MediaType) -> ConfidenceLevel:
    """Return the provisional confidence for text extracted from *media_type*."""
    return _EXTRACTION_CONFIDENCE.get(media_type, ConfidenceLevel.LOW)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class IngestionService:
    """Runs the extraction-to-persistence pipeline for one document at a time.

    The service itself holds no per-document state, so concurrent calls to
    :meth:`process_document` for different documents never interfere.

    Parameters
    ----------
    store:
        Document/chunk persistence.
    extractors:
        Media-type to extractor dispatch.
    cleanup_service:
        Best-effort AI repair of OCR / speech-to-text output.
    embedding_provider:
        Vectorizer applied to every chunk.
    chunker:
        Text splitter.  Its size and overlap are used unless adaptive
        chunking is on.
    tracker:
        Optional in-flight state tracker (status endpoint, listeners).
    adaptive_chunking:
        Size chunks by document length and source category instead of the
        chunker's fixed size.
    embedding_concurrency:
        Maximum concurrent embedding calls per document.
    """

    def __init__(
        self,
        store: IDocumentStore,
        extractors: ExtractorRegistry,
        cleanup_service: TextCleanupService,
        embedding_provider: IEmbeddingProvider,
        chunker: TextChunker | None = None,
        tracker: IngestionTracker | None = None,
        adaptive_chunking: bool = False,
        embedding_concurrency: int = 8,
    ) -> None:
        if embedding_concurrency <= 0:
            raise ValueError(
                f"embedding_concurrency must be positive, got {embedding_concurrency}"
            )
        self._store = store
        self._extractors = extractors
        self._cleanup = cleanup_service
        self._embedder = embedding_provider
        self._chunker = chunker or TextChunker()
        self._tracker = tracker or IngestionTracker()
        self._adaptive_chunking = adaptive_chunking
        self._embedding_concurrency = embedding_concurrency

    @property
    def tracker(self) -> IngestionTracker:
        return self._tracker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_document(
        self,
        document_id: str,
        file_path: str,
        media_type: MediaType | None = None,
    ) -> IngestionResult:
        """Ingest the file at *file_path* into the document *document_id*.

        Parameters
        ----------
        document_id:
            Identifier of a document already created in the store.
        file_path:
            Location of the stored upload.
        media_type:
            Extraction family.  Defaults to the document's own media type.

        Returns
        -------
        IngestionResult
            Terminal status, confidence and chunk counts.  All outcomes are
            also persisted on the document; this return value is for tooling.
        """
        start = time.monotonic()
        with document_context(document_id):
            document = await self._store.get_document(document_id)
            if document is None:
                logger.warning("ingestion_document_missing")
                return IngestionResult(
                    document_id=document_id,
                    status=IngestionStatus.FAILED,
                    error="Document not found",
                    elapsed_seconds=time.monotonic() - start,
                )

            run = _PipelineRun(document, media_type or document.media_type, start)
            try:
                return await self._run(run, file_path)
            except Exception as exc:
                logger.exception("ingestion_unexpected_error", error=str(exc))
                return await self._fail(run, str(exc), keep_text=True)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def _run(self, run: _PipelineRun, file_path: str) -> IngestionResult:
        logger.info("ingestion_started", media_type=run.media_type.value, file_path=file_path)

        # -- Extracting ----------------------------------------------------
        await self._tracker.update(run.document_id, IngestionStatus.EXTRACTING)
        try:
            extractor = self._extractors.get(run.media_type)
            raw_text = await extractor.extract(file_path)
        except ExtractionError as exc:
            logger.warning("extraction_failed", provider=exc.provider_name, error=str(exc))
            return await self._fail(run, str(exc), keep_text=False)

        if not raw_text.strip():
            logger.info("extraction_empty")
            await self._store.replace_chunks(run.document_id, [])
            return await self._finish(run, chunks=[])

        run.raw_text = raw_text
        run.cleaned_text = raw_text
        run.confidence = extraction_confidence(run.media_type)

        # -- Cleaning (lossy sources only) ---------------------------------
        if run.media_type.is_lossy:
            await self._tracker.update(run.document_id, IngestionStatus.CLEANING)
            cleanup = await self._clean(raw_text)
            if cleanup.applied:
                run.cleaned_text = cleanup.text
                run.confidence = run.confidence.upgrade_to(ConfidenceLevel.MEDIUM)

        # -- Chunking ------------------------------------------------------
        await self._tracker.update(run.document_id, IngestionStatus.CHUNKING)
        texts = self._chunker_for(run).chunk(run.cleaned_text)
        logger.info("chunking_complete", num_chunks=len(texts))

        # -- Embedding -----------------------------------------------------
        await self._tracker.update(run.document_id, IngestionStatus.EMBEDDING)
        vectors = await self._embed_chunks(texts)
        chunks = [
            Chunk(
                chunk_id=str(uuid.uuid4()),
                document_id=run.document_id,
                chunk_index=index,
                content=text,
                embedding=vector,
            )
            for index, (text, vector) in enumerate(zip(texts, vectors))
        ]

        await self._store.replace_chunks(run.document_id, chunks)
        return await self._finish(run, chunks=chunks)

    async def _clean(self, raw_text: str) -> CleanupResult:
        """Run cleanup; any failure leaves the raw text in place."""
        try:
            return await self._cleanup.clean(raw_text)
        except Exception as exc:
            logger.warning("text_cleanup_crashed", error=str(exc))
            return CleanupResult(text=raw_text, applied=False)

    def _chunker_for(self, run: _PipelineRun) -> TextChunker:
        if not self._adaptive_chunking:
            return self._chunker
        size = optimal_chunk_size(
            len(run.cleaned_text),
            is_handout=run.document.source_category is SourceCategory.HANDOUT,
        )
        logger.debug("adaptive_chunk_size", chunk_size=size)
        return TextChunker(chunk_size=size, overlap=min(self._chunker.overlap, size - 1))

    async def _embed_chunks(self, texts: list[str]) -> list[list[float] | None]:
        """Embed every chunk text; a failed chunk gets ``None``.

        Any exception from one call, a provider error or a timeout alike,
        only nulls that chunk's vector.  Cancellation still propagates.

        Calls may complete in any order; results are matched back to their
        chunk by position.
        """
        semaphore = asyncio.Semaphore(self._embedding_concurrency)
        results = await throttled_gather(
            [self._embedder.embed_single(t) for t in texts],
            semaphore=semaphore,
            return_exceptions=True,
        )

        vectors: list[list[float] | None] = []
        for index, result in enumerate(results):
            if isinstance(result, Exception):
                logger.warning(
                    "chunk_vectorization_failed",
                    chunk_index=index,
                    provider=getattr(result, "provider_name", None),
                    error_type=type(result).__name__,
                    error=str(result),
                )
                vectors.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                vectors.append(result)
        return vectors

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    async def _finish(self, run: _PipelineRun, chunks: list[Chunk]) -> IngestionResult:
        embedded = sum(1 for c in chunks if c.has_vector)
        await self._persist(run, IngestionStatus.DONE, error=None)
        await self._tracker.update(run.document_id, IngestionStatus.DONE)
        logger.info(
            "ingestion_complete",
            confidence=run.confidence.value,
            chunks_created=len(chunks),
            chunks_embedded=embedded,
        )
        return IngestionResult(
            document_id=run.document_id,
            status=IngestionStatus.DONE,
            confidence=run.confidence,
            chunks_created=len(chunks),
            chunks_embedded=embedded,
            elapsed_seconds=run.elapsed(),
        )

    async def _fail(self, run: _PipelineRun, error: str, keep_text: bool) -> IngestionResult:
        """Persist FAILED with LOW confidence.

        Extraction failures clear the text and any chunks from an earlier
        run; unexpected errors keep whatever text was computed so far.
        """
        run.confidence = ConfidenceLevel.LOW
        if not keep_text:
            run.raw_text = ""
            run.cleaned_text = ""
        try:
            if not keep_text:
                await self._store.replace_chunks(run.document_id, [])
            await self._persist(run, IngestionStatus.FAILED, error=error)
        except StudyRAGError as exc:
            logger.error("ingestion_failure_not_persisted", error=str(exc))
        await self._tracker.update(run.document_id, IngestionStatus.FAILED, error)
        return IngestionResult(
            document_id=run.document_id,
            status=IngestionStatus.FAILED,
            confidence=ConfidenceLevel.LOW,
            elapsed_seconds=run.elapsed(),
            error=error,
        )

    async def _persist(
        self,
        run: _PipelineRun,
        status: IngestionStatus,
        error: str | None,
    ) -> Document:
        updated = run.document.model_copy(
            update={
                "raw_text": run.raw_text,
                "cleaned_text": run.cleaned_text,
                "confidence": run.confidence,
                "status": status,
                "error": error,
                "processed_at": _utcnow(),
            }
        )
        return await self._store.update_document(updated)


class _PipelineRun:
    """Mutable working state of one pipeline execution.

    Owned by a single :meth:`IngestionService.process_document` call and
    never shared.
    """

    def __init__(self, document: Document, media_type: MediaType, start: float) -> None:
        self.document = document
        self.document_id = document.document_id
        self.media_type = media_type
        self.raw_text = ""
        self.cleaned_text = ""
        self.confidence = ConfidenceLevel.LOW
        self._start = start

    def elapsed(self) -> float:
        return time.monotonic() - self._start
