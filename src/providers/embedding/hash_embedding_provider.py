"""Deterministic hash-based surrogate embedding provider.

Maps text to a fixed-length, unit-normalised vector without any model or
network access.  It has no semantic quality; what it guarantees is that
the same text always produces the same vector, every vector has the same
dimension, and texts that share vocabulary get a non-zero cosine
similarity.  A real embedding backend can replace it behind
:class:`IEmbeddingProvider` without touching the retrieval engine.

Algorithm
---------
1. Lowercase and split on whitespace.
2. Deduplicate tokens, keeping first-occurrence order.
3. For unique token ``i`` and its character ``j`` with code point ``c``,
   add ``1 / n_unique`` to index ``(c * (i + 1) * (j + 1)) mod D``.
4. Divide by the Euclidean norm (the zero vector stays zero).
"""

from __future__ import annotations

import numpy as np
import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_DIMENSION = 768


def hash_embed(text: str, dimension: int = DEFAULT_DIMENSION) -> list[float]:
    """Return the surrogate embedding of *text* as a list of floats."""
    vector = np.zeros(dimension, dtype=np.float64)

    unique_tokens = list(dict.fromkeys(text.lower().split()))
    if not unique_tokens:
        return vector.tolist()

    weight = 1.0 / len(unique_tokens)
    for i, token in enumerate(unique_tokens):
        for j, char in enumerate(token):
            vector[(ord(char) * (i + 1) * (j + 1)) % dimension] += weight

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector.tolist()


class HashEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by :func:`hash_embed`.

    Never fails and never touches the network, so it is always available.
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [hash_embed(t, self._dimension) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return hash_embed(text, self._dimension)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hash-surrogate"

    def is_available(self) -> bool:
        return True
