"""Abstract base class for the document/chunk store.

The store is the only shared mutable resource in the system.  The ingestion
pipeline writes to it (one document at a time, never locking across
documents) and the retrieval engine reads from it.  No transactional
isolation is promised across that boundary: a query may or may not see the
chunks of a document that is still being ingested.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import CandidateChunk, Chunk, Document, DocumentSummary


# Concrete implementations: SQLiteDocumentStore, InMemoryDocumentStore
# Located in: src/providers/store/
class IDocumentStore(ABC):
    """Contract for persisting documents and their chunks.

    Implementations must:
    * cascade chunk deletion when a document is deleted;
    * keep chunk ordinals unique per document;
    * reject vectors whose length differs from the configured dimension.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / structures if they do not exist yet."""

    # -- Documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert a new document record and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def update_document(self, document: Document) -> Document:
        """Overwrite the stored record for ``document.document_id``.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If the document does not exist (e.g. deleted mid-ingestion).
        """

    @abstractmethod
    async def list_documents(self, course_code: str | None = None) -> list[DocumentSummary]:
        """Return documents (newest first) with their chunk counts."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document and, by cascade, all of its chunks.

        Returns ``True`` if a document was deleted.
        """

    # -- Chunks ------------------------------------------------------------

    @abstractmethod
    async def replace_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        """Delete any existing chunks of *document_id* and insert *chunks*.

        Both steps happen atomically with respect to other writers of the
        same document.  Returns the number of chunks inserted.

        Raises
        ------
        src.utils.errors.VectorDimensionError
            If any non-null vector has the wrong length.
        """

    @abstractmethod
    async def get_chunks(self, document_id: str) -> list[Chunk]:
        """Return the chunks of *document_id* ordered by ``chunk_index``."""

    @abstractmethod
    async def get_candidates(
        self,
        course_code: str | None = None,
        with_vectors_only: bool = True,
    ) -> list[CandidateChunk]:
        """Return retrieval candidates joined with parent-document fields.

        Parameters
        ----------
        course_code:
            When given, only chunks whose owning document has exactly this
            course code are returned.
        with_vectors_only:
            When ``True`` (vector retrieval), chunks with a null vector are
            excluded.  Keyword search passes ``False``.

        Rows are ordered by document creation time, then ``chunk_index``.
        """
