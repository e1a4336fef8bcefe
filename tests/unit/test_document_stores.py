"""Unit tests for the SQLite and in-memory document stores.

Both implementations run the same suite, so their semantics (cascade
delete, dense ordinals, vector checks, ordering) cannot drift apart.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from src.interfaces.document_store import IDocumentStore
from src.models.document import Chunk, Document, IngestionStatus
from src.providers.store.memory_document_store import InMemoryDocumentStore
from src.providers.store.sqlite_document_store import SQLiteDocumentStore
from src.utils.confidence import ConfidenceLevel
from src.utils.errors import DocumentNotFoundError, StoreError, VectorDimensionError

_DIM = 4
_T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)  # noqa: UP017


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncIterator[IDocumentStore]:
    if request.param == "memory":
        backend: IDocumentStore = InMemoryDocumentStore(embedding_dimension=_DIM)
    else:
        backend = SQLiteDocumentStore(
            db_path=tmp_path / "nested" / "test.db", embedding_dimension=_DIM
        )
    await backend.initialize()
    yield backend


def _chunk(document_id: str, index: int, vector: list[float] | None = None) -> Chunk:
    return Chunk(
        chunk_id=f"{document_id}-c{index}",
        document_id=document_id,
        chunk_index=index,
        content=f"chunk {index} of {document_id}",
        embedding=vector,
    )


# ======================================================================
# Documents
# ======================================================================


class TestDocuments:
    @pytest.mark.asyncio
    async def test_create_and_get_round_trip(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document(owner_id="student-7", created_at=_T0)
        await store.create_document(doc)

        fetched = await store.get_document(doc.document_id)

        assert fetched == doc
        assert await store.get_document("missing") is None

    @pytest.mark.asyncio
    async def test_update_persists_terminal_state(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        done = doc.model_copy(
            update={
                "raw_text": "raw",
                "cleaned_text": "clean",
                "confidence": ConfidenceLevel.MEDIUM,
                "status": IngestionStatus.DONE,
                "processed_at": _T0 + timedelta(minutes=1),
            }
        )

        await store.update_document(done)
        fetched = await store.get_document(doc.document_id)

        assert fetched is not None
        assert fetched.status is IngestionStatus.DONE
        assert fetched.confidence is ConfidenceLevel.MEDIUM
        assert fetched.cleaned_text == "clean"
        assert fetched.processed_at == _T0 + timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_update_missing_document(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        with pytest.raises(DocumentNotFoundError):
            await store.update_document(make_document())

    @pytest.mark.asyncio
    async def test_list_newest_first_with_counts_and_filter(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        old = make_document(course_code="CSC201", created_at=_T0)
        new = make_document(course_code="MTH101", created_at=_T0 + timedelta(hours=1))
        await store.create_document(old)
        await store.create_document(new)
        await store.replace_chunks(old.document_id, [_chunk(old.document_id, 0)])

        listed = await store.list_documents()
        scoped = await store.list_documents(course_code="CSC201")

        assert [s.document.document_id for s in listed] == [new.document_id, old.document_id]
        assert [s.chunk_count for s in listed] == [0, 1]
        assert [s.document.document_id for s in scoped] == [old.document_id]


# ======================================================================
# Chunks
# ======================================================================


class TestChunks:
    @pytest.mark.asyncio
    async def test_replace_and_read_in_ordinal_order(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        chunks = [
            _chunk(doc.document_id, 1, [0.0, 1.0, 0.0, 0.0]),
            _chunk(doc.document_id, 0, [0.5, 0.5, 0.5, 0.5]),
            _chunk(doc.document_id, 2, None),
        ]

        count = await store.replace_chunks(doc.document_id, chunks)
        stored = await store.get_chunks(doc.document_id)

        assert count == 3
        assert [c.chunk_index for c in stored] == [0, 1, 2]
        assert stored[0].embedding == [0.5, 0.5, 0.5, 0.5]
        assert stored[2].embedding is None

    @pytest.mark.asyncio
    async def test_replace_is_idempotent(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        chunks = [_chunk(doc.document_id, i) for i in range(3)]

        await store.replace_chunks(doc.document_id, chunks)
        await store.replace_chunks(doc.document_id, chunks)
        await store.replace_chunks(doc.document_id, chunks[:1])

        assert len(await store.get_chunks(doc.document_id)) == 1

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)

        with pytest.raises(VectorDimensionError):
            await store.replace_chunks(doc.document_id, [_chunk(doc.document_id, 0, [1.0, 0.0])])
        assert await store.get_chunks(doc.document_id) == []

    @pytest.mark.asyncio
    async def test_duplicate_ordinal_rejected(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        first = _chunk(doc.document_id, 0)
        clash = first.model_copy(update={"chunk_id": "other"})

        with pytest.raises(StoreError):
            await store.replace_chunks(doc.document_id, [first, clash])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ordinals", [[3, 7], [1, 2], [0, 2]])
    async def test_gapped_ordinals_rejected(
        self,
        store: IDocumentStore,
        make_document: Callable[..., Document],
        ordinals: list[int],
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        await store.replace_chunks(doc.document_id, [_chunk(doc.document_id, 0)])

        with pytest.raises(StoreError, match="without gaps"):
            await store.replace_chunks(
                doc.document_id, [_chunk(doc.document_id, i) for i in ordinals]
            )
        assert [c.chunk_index for c in await store.get_chunks(doc.document_id)] == [0]

    @pytest.mark.asyncio
    async def test_chunk_for_other_document_rejected(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)

        with pytest.raises(StoreError):
            await store.replace_chunks(doc.document_id, [_chunk("someone-else", 0)])

    @pytest.mark.asyncio
    async def test_replace_for_missing_document(self, store: IDocumentStore) -> None:
        with pytest.raises(DocumentNotFoundError):
            await store.replace_chunks("missing", [_chunk("missing", 0)])

    @pytest.mark.asyncio
    async def test_delete_cascades_to_chunks(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document()
        await store.create_document(doc)
        await store.replace_chunks(doc.document_id, [_chunk(doc.document_id, 0, [1.0] * _DIM)])

        assert await store.delete_document(doc.document_id) is True
        assert await store.delete_document(doc.document_id) is False
        assert await store.get_document(doc.document_id) is None
        assert await store.get_chunks(doc.document_id) == []
        assert await store.get_candidates(with_vectors_only=False) == []


# ======================================================================
# Candidates
# ======================================================================


class TestCandidates:
    @pytest.mark.asyncio
    async def test_scope_vectors_and_order(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        csc_late = make_document(
            course_code="CSC201",
            created_at=_T0 + timedelta(hours=2),
            confidence=ConfidenceLevel.MEDIUM,
        )
        csc_early = make_document(course_code="CSC201", created_at=_T0)
        mth = make_document(course_code="MTH101", created_at=_T0 + timedelta(hours=1))
        for doc in (csc_late, csc_early, mth):
            await store.create_document(doc)
            await store.replace_chunks(
                doc.document_id,
                [
                    _chunk(doc.document_id, 0, [1.0, 0.0, 0.0, 0.0]),
                    _chunk(doc.document_id, 1, None),
                ],
            )

        vectors = await store.get_candidates(course_code="CSC201")
        everything = await store.get_candidates(with_vectors_only=False)

        assert [(c.chunk.document_id, c.chunk.chunk_index) for c in vectors] == [
            (csc_early.document_id, 0),
            (csc_late.document_id, 0),
        ]
        assert vectors[1].document_confidence is ConfidenceLevel.MEDIUM
        assert vectors[0].course_code == "CSC201"
        assert [(c.chunk.document_id, c.chunk.chunk_index) for c in everything] == [
            (csc_early.document_id, 0),
            (csc_early.document_id, 1),
            (mth.document_id, 0),
            (mth.document_id, 1),
            (csc_late.document_id, 0),
            (csc_late.document_id, 1),
        ]

    @pytest.mark.asyncio
    async def test_unknown_scope_is_empty(
        self, store: IDocumentStore, make_document: Callable[..., Document]
    ) -> None:
        doc = make_document(course_code="CSC201")
        await store.create_document(doc)
        await store.replace_chunks(doc.document_id, [_chunk(doc.document_id, 0, [1.0] * _DIM)])

        assert await store.get_candidates(course_code="PHY999") == []
