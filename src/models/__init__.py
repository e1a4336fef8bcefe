"""studyrag domain models — re-exports the public model classes.

    - document.py — uploaded documents, chunks, and ingestion states
    - rag.py      — retrieval results and ingestion summaries
"""

from __future__ import annotations

from src.models.document import (
    CandidateChunk,
    Chunk,
    Document,
    DocumentSummary,
    IngestionStatus,
    MediaType,
    SourceCategory,
)
from src.models.rag import (
    IngestionResult,
    RetrievalResult,
    RetrievalStrategy,
    ScoredChunk,
)

__all__ = [
    "CandidateChunk",
    "Chunk",
    "Document",
    "DocumentSummary",
    "IngestionResult",
    "IngestionStatus",
    "MediaType",
    "RetrievalResult",
    "RetrievalStrategy",
    "ScoredChunk",
    "SourceCategory",
]
