"""In-memory document/chunk store.

Dict-backed implementation of :class:`IDocumentStore` with the same
semantics as the SQLite store: cascading delete, dense unique ordinals and
vector-dimension checks.  Used by the test suite; contents are lost when
the process exits.
"""

from __future__ import annotations

import itertools

import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import CandidateChunk, Chunk, Document, DocumentSummary
from src.providers.store.validation import validate_chunks
from src.utils.errors import DocumentNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "memory"


class InMemoryDocumentStore(IDocumentStore):
    """Documents and chunks held in process memory.

    Every method body runs without awaiting, so each operation is atomic
    with respect to other coroutines on the same event loop.
    """

    def __init__(self, embedding_dimension: int = 768) -> None:
        self._dimension = embedding_dimension
        self._documents: dict[str, Document] = {}
        self._chunks: dict[str, list[Chunk]] = {}
        # Insertion sequence breaks created_at ties the way SQLite's rowid does.
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()

    async def initialize(self) -> None:
        logger.info("document_store_initialized", backend=_PROVIDER_NAME)

    # -- Documents ---------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        self._documents[document.document_id] = document
        self._chunks.setdefault(document.document_id, [])
        self._sequence[document.document_id] = next(self._counter)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    async def update_document(self, document: Document) -> Document:
        if document.document_id not in self._documents:
            raise DocumentNotFoundError(
                message=f"Document {document.document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        self._documents[document.document_id] = document
        return document

    async def list_documents(self, course_code: str | None = None) -> list[DocumentSummary]:
        docs = [
            d
            for d in self._documents.values()
            if course_code is None or d.course_code == course_code
        ]
        docs.sort(
            key=lambda d: (d.created_at, self._sequence[d.document_id]),
            reverse=True,
        )
        return [
            DocumentSummary(document=d, chunk_count=len(self._chunks.get(d.document_id, [])))
            for d in docs
        ]

    async def delete_document(self, document_id: str) -> bool:
        if self._documents.pop(document_id, None) is None:
            return False
        self._chunks.pop(document_id, None)
        self._sequence.pop(document_id, None)
        logger.info("document_deleted", document_id=document_id)
        return True

    # -- Chunks ------------------------------------------------------------

    async def replace_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        validate_chunks(document_id, chunks, self._dimension, _PROVIDER_NAME)
        if document_id not in self._documents:
            raise DocumentNotFoundError(
                message=f"Document {document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        self._chunks[document_id] = sorted(chunks, key=lambda c: c.chunk_index)
        return len(chunks)

    async def get_chunks(self, document_id: str) -> list[Chunk]:
        return list(self._chunks.get(document_id, []))

    async def get_candidates(
        self,
        course_code: str | None = None,
        with_vectors_only: bool = True,
    ) -> list[CandidateChunk]:
        docs = sorted(
            self._documents.values(),
            key=lambda d: (d.created_at, self._sequence[d.document_id]),
        )
        candidates: list[CandidateChunk] = []
        for doc in docs:
            if course_code is not None and doc.course_code != course_code:
                continue
            for chunk in self._chunks.get(doc.document_id, []):
                if with_vectors_only and chunk.embedding is None:
                    continue
                candidates.append(
                    CandidateChunk(
                        chunk=chunk,
                        document_confidence=doc.confidence,
                        course_code=doc.course_code,
                    )
                )
        return candidates

    def get_provider_name(self) -> str:
        return "memory_document_store"
