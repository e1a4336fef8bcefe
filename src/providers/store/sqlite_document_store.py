"""SQLite-backed document/chunk store.

Persists documents and their chunks to a local SQLite database at
``data/studyrag.db``.  Uses ``aiosqlite`` for async I/O and opens one
short-lived connection per operation, so concurrent ingestion of two
documents never holds a lock across the other's writes.

Chunk vectors are stored as packed float64 arrays (``BLOB``) and their
length is checked against the configured dimension on every write.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite
import numpy as np
import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import (
    CandidateChunk,
    Chunk,
    Document,
    DocumentSummary,
    IngestionStatus,
    MediaType,
    SourceCategory,
)
from src.providers.store.validation import validate_chunks
from src.utils.confidence import ConfidenceLevel
from src.utils.errors import DocumentNotFoundError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/studyrag.db")
_PROVIDER_NAME = "sqlite"

_CREATE_DOCUMENTS_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    document_id     TEXT    PRIMARY KEY,
    media_type      TEXT    NOT NULL,
    mime_type       TEXT    NOT NULL DEFAULT '',
    source_category TEXT    NOT NULL,
    course_code     TEXT,
    owner_id        TEXT,
    filename        TEXT    NOT NULL DEFAULT '',
    original_name   TEXT    NOT NULL DEFAULT '',
    size_bytes      INTEGER NOT NULL DEFAULT 0,
    raw_text        TEXT    NOT NULL DEFAULT '',
    cleaned_text    TEXT    NOT NULL DEFAULT '',
    confidence      TEXT    NOT NULL DEFAULT 'low',
    status          TEXT    NOT NULL DEFAULT 'pending',
    error           TEXT,
    created_at      TEXT    NOT NULL,
    processed_at    TEXT
);
"""

_CREATE_CHUNKS_SQL = """\
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id     TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL REFERENCES documents(document_id) ON DELETE CASCADE,
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    embedding    BLOB,
    UNIQUE(document_id, chunk_index)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_course ON documents(course_code);",
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);",
]

_DOCUMENT_COLUMNS = (
    "document_id",
    "media_type",
    "mime_type",
    "source_category",
    "course_code",
    "owner_id",
    "filename",
    "original_name",
    "size_bytes",
    "raw_text",
    "cleaned_text",
    "confidence",
    "status",
    "error",
    "created_at",
    "processed_at",
)

_INSERT_DOCUMENT_SQL = (
    f"INSERT INTO documents ({', '.join(_DOCUMENT_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _DOCUMENT_COLUMNS)});"
)

_UPDATE_DOCUMENT_SQL = (
    "UPDATE documents SET "
    + ", ".join(f"{col} = ?" for col in _DOCUMENT_COLUMNS[1:])
    + " WHERE document_id = ?;"
)

_INSERT_CHUNK_SQL = """\
INSERT INTO chunks (chunk_id, document_id, chunk_index, content, embedding)
VALUES (?, ?, ?, ?, ?);
"""

_LIST_DOCUMENTS_SQL = """\
SELECT d.*, COUNT(c.chunk_id) AS chunk_count
FROM documents d
LEFT JOIN chunks c ON c.document_id = d.document_id
{where}
GROUP BY d.document_id
ORDER BY d.created_at DESC, d.rowid DESC;
"""

_CANDIDATES_SQL = """\
SELECT c.chunk_id, c.document_id, c.chunk_index, c.content, c.embedding,
       d.confidence, d.course_code
FROM chunks c
JOIN documents d ON d.document_id = c.document_id
{where}
ORDER BY d.created_at ASC, d.rowid ASC, c.chunk_index ASC;
"""


# ---------------------------------------------------------------------------
# Row conversion helpers
# ---------------------------------------------------------------------------

def _pack_vector(vector: list[float] | None) -> bytes | None:
    if vector is None:
        return None
    return np.asarray(vector, dtype=np.float64).tobytes()


def _unpack_vector(blob: bytes | None) -> list[float] | None:
    if blob is None:
        return None
    return np.frombuffer(blob, dtype=np.float64).tolist()


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat(timespec="microseconds") if value else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _document_params(document: Document) -> tuple:
    return (
        document.document_id,
        document.media_type.value,
        document.mime_type,
        document.source_category.value,
        document.course_code,
        document.owner_id,
        document.filename,
        document.original_name,
        document.size_bytes,
        document.raw_text,
        document.cleaned_text,
        document.confidence.value,
        document.status.value,
        document.error,
        _format_ts(document.created_at),
        _format_ts(document.processed_at),
    )


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        document_id=row["document_id"],
        media_type=MediaType(row["media_type"]),
        mime_type=row["mime_type"],
        source_category=SourceCategory(row["source_category"]),
        course_code=row["course_code"],
        owner_id=row["owner_id"],
        filename=row["filename"],
        original_name=row["original_name"],
        size_bytes=row["size_bytes"],
        raw_text=row["raw_text"],
        cleaned_text=row["cleaned_text"],
        confidence=ConfidenceLevel(row["confidence"]),
        status=IngestionStatus(row["status"]),
        error=row["error"],
        created_at=_parse_ts(row["created_at"]),
        processed_at=_parse_ts(row["processed_at"]),
    )


def _row_to_chunk(row: aiosqlite.Row) -> Chunk:
    return Chunk(
        chunk_id=row["chunk_id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        embedding=_unpack_vector(row["embedding"]),
    )


class SQLiteDocumentStore(IDocumentStore):
    """Document and chunk persistence in a single SQLite file.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Parent directories are created
        by :meth:`initialize`.
    embedding_dimension:
        Required length of every non-null chunk vector.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        embedding_dimension: int = 768,
    ) -> None:
        self._db_path = Path(db_path)
        self._dimension = embedding_dimension

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute(_CREATE_DOCUMENTS_SQL)
            await db.execute(_CREATE_CHUNKS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_store_initialized", path=str(self._db_path))

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with foreign keys enforced.

        SQLite errors are re-raised as :class:`StoreError`.
        """
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                yield db
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"SQLite operation failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with self._connect() as db:
            await db.execute(_INSERT_DOCUMENT_SQL, _document_params(document))
            await db.commit()
        logger.debug("document_created", document_id=document.document_id)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM documents WHERE document_id = ?;", (document_id,)
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def update_document(self, document: Document) -> Document:
        params = _document_params(document)
        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_DOCUMENT_SQL, (*params[1:], params[0]))
            await db.commit()
            updated = cursor.rowcount
        if not updated:
            raise DocumentNotFoundError(
                message=f"Document {document.document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        return document

    async def list_documents(self, course_code: str | None = None) -> list[DocumentSummary]:
        where = "WHERE d.course_code = ?" if course_code is not None else ""
        params = (course_code,) if course_code is not None else ()
        async with self._connect() as db:
            cursor = await db.execute(_LIST_DOCUMENTS_SQL.format(where=where), params)
            rows = await cursor.fetchall()
        return [
            DocumentSummary(document=_row_to_document(row), chunk_count=row["chunk_count"])
            for row in rows
        ]

    async def delete_document(self, document_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM documents WHERE document_id = ?;", (document_id,)
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("document_deleted", document_id=document_id)
        return deleted

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def replace_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        validate_chunks(document_id, chunks, self._dimension, _PROVIDER_NAME)

        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT 1 FROM documents WHERE document_id = ? LIMIT 1;", (document_id,)
            )
            if await cursor.fetchone() is None:
                raise DocumentNotFoundError(
                    message=f"Document {document_id} does not exist",
                    provider_name=_PROVIDER_NAME,
                )
            await db.execute("DELETE FROM chunks WHERE document_id = ?;", (document_id,))
            await db.executemany(
                _INSERT_CHUNK_SQL,
                [
                    (
                        c.chunk_id,
                        c.document_id,
                        c.chunk_index,
                        c.content,
                        _pack_vector(c.embedding),
                    )
                    for c in chunks
                ],
            )
            await db.commit()

        logger.debug("chunks_replaced", document_id=document_id, count=len(chunks))
        return len(chunks)

    async def get_chunks(self, document_id: str) -> list[Chunk]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index ASC;",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(row) for row in rows]

    async def get_candidates(
        self,
        course_code: str | None = None,
        with_vectors_only: bool = True,
    ) -> list[CandidateChunk]:
        clauses: list[str] = []
        params: list[str] = []
        if with_vectors_only:
            clauses.append("c.embedding IS NOT NULL")
        if course_code is not None:
            clauses.append("d.course_code = ?")
            params.append(course_code)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with self._connect() as db:
            cursor = await db.execute(_CANDIDATES_SQL.format(where=where), params)
            rows = await cursor.fetchall()

        return [
            CandidateChunk(
                chunk=_row_to_chunk(row),
                document_confidence=ConfidenceLevel(row["confidence"]),
                course_code=row["course_code"],
            )
            for row in rows
        ]

    def get_provider_name(self) -> str:
        return "sqlite_document_store"
