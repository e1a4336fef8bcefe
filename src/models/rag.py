"""Retrieval, answer and ingestion result models.

These are ephemeral: nothing here is persisted.  A :class:`RetrievalResult`
references chunks by identifier and copies the content it needs for the
answer-generation step; an :class:`Answer` carries the generated reply
back with those citations.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.models.document import IngestionStatus
from src.utils.confidence import ConfidenceLevel

# Separator used when retrieved chunks are stitched into an LLM context block.
CONTEXT_SEPARATOR = "\n\n---\n\n"
_EXCERPT_LENGTH = 100


class RetrievalStrategy(str, Enum):  # noqa: UP042
    """Which ranking path produced a result set."""

    VECTOR = "vector"
    KEYWORD = "keyword"


class AnswerMode(str, Enum):  # noqa: UP042
    """Register of a generated answer.

    ``BRAINY`` may draw on the model's general knowledge; every other mode
    answers from the retrieved material only.
    """

    EXAM = "exam"
    ELI5 = "eli5"
    GIST = "gist"
    BRAINY = "brainy"

    @property
    def grounded(self) -> bool:
        return self is not AnswerMode.BRAINY


# ---------------------------------------------------------------------------
# ScoredChunk â one ranked search hit.
# ---------------------------------------------------------------------------
class ScoredChunk(BaseModel):
    """A chunk annotated with its score and its parent document's confidence."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    document_id: str
    chunk_index: int = Field(ge=0)
    content: str
    score: float = Field(
        ge=-1.0,
        le=1.0,
        description="Cosine similarity (vector path) or keyword hit ratio (keyword path).",
    )
    confidence: ConfidenceLevel = Field(
        default=ConfidenceLevel.LOW,
        description="Confidence inherited from the owning document.",
    )


# ---------------------------------------------------------------------------
# RetrievalResult â ranked chunks plus an aggregate label.
# ---------------------------------------------------------------------------
class RetrievalResult(BaseModel):
    """Ranked chunks for a query and the aggregate confidence of the set."""

    model_config = ConfigDict(frozen=True)

    chunks: list[ScoredChunk] = Field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    strategy: RetrievalStrategy = RetrievalStrategy.VECTOR

    @property
    def is_empty(self) -> bool:
        return not self.chunks

    def build_context(self) -> str:
        """Join chunk contents into a single context block for an LLM prompt."""
        return CONTEXT_SEPARATOR.join(c.content for c in self.chunks)

    def sources(self) -> list[dict[str, str]]:
        """Citation stubs for display next to a generated answer."""
        return [
            {
                "document_id": c.document_id,
                "excerpt": c.content[:_EXCERPT_LENGTH] + "...",
                "confidence": c.confidence.value,
            }
            for c in self.chunks
        ]


# ---------------------------------------------------------------------------
# Answer — a generated reply with its citations.
# ---------------------------------------------------------------------------
class Answer(BaseModel):
    """LLM answer to a question, with the retrieval it was grounded on."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    mode: AnswerMode = AnswerMode.EXAM
    sources: list[dict[str, str]] = Field(default_factory=list)
    confidence: ConfidenceLevel = Field(
        default=ConfidenceLevel.LOW,
        description="Aggregate confidence of the retrieved context.",
    )
    strategy: RetrievalStrategy = RetrievalStrategy.VECTOR
    context_used: bool = Field(
        default=False,
        description="False when nothing relevant was retrieved.",
    )


# ---------------------------------------------------------------------------
# IngestionResult â summary of one pipeline run.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Outcome of processing one document.

    Returned to tooling (CLI, tests); the HTTP boundary never sees it, since
    uploads are acknowledged before ingestion runs.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    status: IngestionStatus
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    chunks_created: int = Field(default=0, ge=0)
    chunks_embedded: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0.0)
    error: str | None = None
