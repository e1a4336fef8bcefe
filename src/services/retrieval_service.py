"""Retrieval engine: ranks stored chunks against a query.

Two ranking paths share one candidate source (the document store):

* **Vector retrieval** (:meth:`RetrievalService.retrieve`) embeds the query,
  scores every candidate chunk that has a vector by cosine similarity,
  keeps the ``top_k`` best, and labels the set with an aggregate
  confidence derived from the mean score.
* **Keyword search** (:meth:`RetrievalService.keyword_search`) scores
  chunks by the fraction of query words (longer than two characters) that
  appear in their text.  It works without any vectors, so it also finds
  chunks whose vectorization failed, but it never produces a confidence
  label above LOW.

:meth:`RetrievalService.search` tries the vector path first and falls back
to keywords when the query cannot be embedded or the vector result is
degenerate (no candidates, or every score zero).

Ordering is deterministic: candidates arrive from the store ordered by
document creation time then chunk ordinal, and are stable-sorted by
descending score with ``chunk_index`` ascending as the tie-break.

Retrieval is read-only and holds no state between calls, so it is safe to
run concurrently with ingestion.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import structlog

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.document import CandidateChunk
from src.models.rag import RetrievalResult, RetrievalStrategy, ScoredChunk
from src.utils.confidence import ConfidenceLevel, aggregate_confidence
from src.utils.errors import VectorizationError

logger = structlog.get_logger(logger_name=__name__)

_MIN_KEYWORD_LENGTH = 3


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of *a* and *b*, clamped to ``[-1, 1]``.

    Returns ``0.0`` when either vector has zero magnitude or the lengths
    differ.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        return 0.0
    magnitude = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if magnitude == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / magnitude, -1.0, 1.0))


def keyword_tokens(query: str) -> list[str]:
    """Lowercase *query* and return its words longer than two characters.

    Repeated words are kept.  Each occurrence counts once in the hit total
    and once in the denominator, so "data data tree" against a chunk that
    only mentions "data" scores 2/3.
    """
    return [w for w in query.lower().split() if len(w) >= _MIN_KEYWORD_LENGTH]


def rank_candidates(
    scored: list[tuple[CandidateChunk, float]],
    limit: int,
) -> list[ScoredChunk]:
    """Sort ``(candidate, score)`` pairs best-first and keep *limit* of them.

    Python's sort is stable, so equal ``(score, chunk_index)`` pairs keep
    the store's document-creation order.
    """
    ordered = sorted(scored, key=lambda pair: (-pair[1], pair[0].chunk.chunk_index))
    return [
        ScoredChunk(
            chunk_id=candidate.chunk.chunk_id,
            document_id=candidate.chunk.document_id,
            chunk_index=candidate.chunk.chunk_index,
            content=candidate.chunk.content,
            score=score,
            confidence=candidate.document_confidence,
        )
        for candidate, score in ordered[:limit]
    ]


class RetrievalService:
    """Vector and keyword retrieval over the document store.

    Parameters
    ----------
    store:
        Source of candidate chunks.
    embedding_provider:
        Vectorizer used for the query.  Must be the same backend (and so
        the same dimension) that embedded the stored chunks.
    default_top_k:
        Result size for :meth:`retrieve` and :meth:`search` when the caller
        passes none.
    keyword_limit:
        Result size for :meth:`keyword_search` when the caller passes none.
    """

    def __init__(
        self,
        store: IDocumentStore,
        embedding_provider: IEmbeddingProvider,
        default_top_k: int = 5,
        keyword_limit: int = 5,
    ) -> None:
        self._store = store
        self._embedder = embedding_provider
        self._default_top_k = default_top_k
        self._keyword_limit = keyword_limit

    # ------------------------------------------------------------------
    # Vector retrieval
    # ------------------------------------------------------------------

    async def retrieve(
        self,
        query: str,
        course_code: str | None = None,
        top_k: int | None = None,
    ) -> RetrievalResult:
        """Rank vector-bearing chunks by cosine similarity to *query*.

        Parameters
        ----------
        query:
            Free-text question.
        course_code:
            Scope filter.  Only chunks of documents with exactly this course
            code are considered; an empty scope yields an empty result and
            never widens to the unfiltered set.
        top_k:
            Maximum number of chunks to return.

        Raises
        ------
        VectorizationError
            If the query cannot be embedded.
        StoreError
            If the store cannot be read.
        """
        limit = self._resolve_limit(top_k, self._default_top_k)

        query_vector = await self._embedder.embed_single(query)
        candidates = await self._store.get_candidates(
            course_code=course_code, with_vectors_only=True
        )
        if not candidates:
            logger.info("retrieval_no_candidates", course_code=course_code)
            return RetrievalResult(confidence=ConfidenceLevel.LOW)

        scored = [
            (c, cosine_similarity(query_vector, c.chunk.embedding or []))
            for c in candidates
        ]
        if all(score == 0.0 for _, score in scored):
            logger.info(
                "retrieval_degenerate",
                course_code=course_code,
                candidates=len(candidates),
            )
            return RetrievalResult(confidence=ConfidenceLevel.LOW)

        ranked = rank_candidates(scored, limit)
        confidence = aggregate_confidence([c.score for c in ranked])
        logger.info(
            "retrieval_complete",
            course_code=course_code,
            candidates=len(candidates),
            returned=len(ranked),
            confidence=confidence.value,
        )
        return RetrievalResult(
            chunks=ranked,
            confidence=confidence,
            strategy=RetrievalStrategy.VECTOR,
        )

    # ------------------------------------------------------------------
    # Keyword search
    # ------------------------------------------------------------------

    async def keyword_search(
        self,
        query: str,
        course_code: str | None = None,
        limit: int | None = None,
    ) -> list[ScoredChunk]:
        """Rank chunks by the fraction of query keywords they contain.

        Chunks without vectors are included.  Chunks matching no keyword
        are dropped.  A query with no word longer than two characters
        matches nothing.
        """
        max_results = self._resolve_limit(limit, self._keyword_limit)
        keywords = keyword_tokens(query)
        if not keywords:
            return []

        candidates = await self._store.get_candidates(
            course_code=course_code, with_vectors_only=False
        )
        scored: list[tuple[CandidateChunk, float]] = []
        for candidate in candidates:
            content = candidate.chunk.content.lower()
            hits = sum(1 for k in keywords if k in content)
            if hits:
                scored.append((candidate, hits / len(keywords)))

        ranked = rank_candidates(scored, max_results)
        logger.info(
            "keyword_search_complete",
            course_code=course_code,
            keywords=len(keywords),
            candidates=len(candidates),
            returned=len(ranked),
        )
        return ranked

    # ------------------------------------------------------------------
    # Combined entry point
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        course_code: str | None = None,
        top_k: int | None = None,
    ) -> RetrievalResult:
        """Vector retrieval with keyword fallback.

        Falls back when the query cannot be embedded or the vector result is
        empty.  A keyword-path result is always labelled LOW.
        """
        try:
            result = await self.retrieve(query, course_code=course_code, top_k=top_k)
        except VectorizationError as exc:
            logger.warning("query_vectorization_failed", error=str(exc))
        else:
            if not result.is_empty:
                return result

        chunks = await self.keyword_search(
            query,
            course_code=course_code,
            limit=top_k if top_k is not None else self._default_top_k,
        )
        logger.info("retrieval_keyword_fallback", returned=len(chunks))
        return RetrievalResult(
            chunks=chunks,
            confidence=ConfidenceLevel.LOW,
            strategy=RetrievalStrategy.KEYWORD,
        )

    @staticmethod
    def _resolve_limit(requested: int | None, default: int) -> int:
        limit = default if requested is None else requested
        if limit <= 0:
            raise ValueError(f"result limit must be positive, got {limit}")
        return limit
