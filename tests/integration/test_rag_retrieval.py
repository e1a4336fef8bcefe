"""End-to-end ingest-then-retrieve tests on the SQLite store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from src.models.document import Document, MediaType
from src.models.rag import RetrievalStrategy
from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.store.sqlite_document_store import SQLiteDocumentStore
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.extractor_registry import ExtractorRegistry
from src.services.ingestion.ingestion_service import IngestionService
from src.services.retrieval_service import RetrievalService
from src.services.text_cleanup import TextCleanupService
from src.utils.confidence import ConfidenceLevel
from tests.conftest import FakeExtractor

_DIM = 256

_MATHS_TEXT = (
    "A matrix is a rectangular array of numbers arranged in rows and columns.\n\n"
    "The determinant of a square matrix is zero exactly when the matrix is singular."
)


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> AsyncIterator[SQLiteDocumentStore]:
    store = SQLiteDocumentStore(db_path=tmp_path / "rag.db", embedding_dimension=_DIM)
    await store.initialize()
    yield store


async def _ingest(
    store: SQLiteDocumentStore,
    document: Document,
    text: str,
    embedder: HashEmbeddingProvider,
    llm: MagicMock,
) -> None:
    await store.create_document(document)
    service = IngestionService(
        store=store,
        extractors=ExtractorRegistry([FakeExtractor(MediaType.PDF, text=text)]),
        cleanup_service=TextCleanupService(llm),
        embedding_provider=embedder,
        chunker=TextChunker(chunk_size=250, overlap=0),
    )
    await service.process_document(document.document_id, "/unused.pdf")


class TestIngestThenRetrieve:
    @pytest.mark.asyncio
    async def test_exact_chunk_text_ranks_first(
        self,
        sqlite_store: SQLiteDocumentStore,
        make_document: Callable[..., Document],
        mock_llm: MagicMock,
        sample_handout_text: str,
    ) -> None:
        embedder = HashEmbeddingProvider(dimension=_DIM)
        csc = make_document(course_code="CSC201")
        mth = make_document(course_code="MTH101")
        await _ingest(sqlite_store, csc, sample_handout_text, embedder, mock_llm)
        await _ingest(sqlite_store, mth, _MATHS_TEXT, embedder, mock_llm)
        chunks = await sqlite_store.get_chunks(csc.document_id)
        target = chunks[2]
        retrieval = RetrievalService(sqlite_store, embedder)

        result = await retrieval.retrieve(target.content, top_k=1)

        assert result.strategy is RetrievalStrategy.VECTOR
        assert result.chunks[0].chunk_id == target.chunk_id
        assert result.chunks[0].score == pytest.approx(1.0)
        assert result.chunks[0].confidence is ConfidenceLevel.MEDIUM
        assert result.confidence is ConfidenceLevel.HIGH

    @pytest.mark.asyncio
    async def test_scope_keeps_courses_apart(
        self,
        sqlite_store: SQLiteDocumentStore,
        make_document: Callable[..., Document],
        mock_llm: MagicMock,
        sample_handout_text: str,
    ) -> None:
        embedder = HashEmbeddingProvider(dimension=_DIM)
        csc = make_document(course_code="CSC201")
        mth = make_document(course_code="MTH101")
        await _ingest(sqlite_store, csc, sample_handout_text, embedder, mock_llm)
        await _ingest(sqlite_store, mth, _MATHS_TEXT, embedder, mock_llm)
        retrieval = RetrievalService(sqlite_store, embedder)

        result = await retrieval.search("matrix determinant", course_code="MTH101", top_k=10)

        assert result.chunks
        assert {c.document_id for c in result.chunks} == {mth.document_id}

    @pytest.mark.asyncio
    async def test_deleted_document_no_longer_retrieved(
        self,
        sqlite_store: SQLiteDocumentStore,
        make_document: Callable[..., Document],
        mock_llm: MagicMock,
    ) -> None:
        embedder = HashEmbeddingProvider(dimension=_DIM)
        mth = make_document(course_code="MTH101")
        await _ingest(sqlite_store, mth, _MATHS_TEXT, embedder, mock_llm)
        retrieval = RetrievalService(sqlite_store, embedder)
        assert not (await retrieval.search("matrix", course_code="MTH101")).is_empty

        await sqlite_store.delete_document(mth.document_id)
        result = await retrieval.search("matrix", course_code="MTH101")

        assert result.is_empty
        assert result.confidence is ConfidenceLevel.LOW

    @pytest.mark.asyncio
    async def test_persisted_state_survives_reopen(
        self,
        tmp_path: Path,
        make_document: Callable[..., Document],
        mock_llm: MagicMock,
    ) -> None:
        embedder = HashEmbeddingProvider(dimension=_DIM)
        path = tmp_path / "reopen.db"
        first = SQLiteDocumentStore(db_path=path, embedding_dimension=_DIM)
        await first.initialize()
        doc = make_document(course_code="MTH101")
        await _ingest(first, doc, _MATHS_TEXT, embedder, mock_llm)

        second = SQLiteDocumentStore(db_path=path, embedding_dimension=_DIM)
        await second.initialize()
        result = await RetrievalService(second, embedder).search("matrix rows columns")

        assert {c.document_id for c in result.chunks} == {doc.document_id}
