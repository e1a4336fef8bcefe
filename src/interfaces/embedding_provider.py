"""Abstract base class for text-embedding providers (the vectorizer).

The retrieval engine only needs "text in, fixed-length vector out".  The
reference deployment uses a deterministic hash-based surrogate; a real
embedding model can be dropped in behind the same contract as long as it
keeps the dimension constant and returns unit-length vectors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   HashEmbeddingProvider   — deterministic surrogate, no network (default)
#   OpenAIEmbeddingProvider — OpenAI-compatible embeddings API
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for services that map text to embedding vectors."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Vectors corresponding positionally to *texts*, each of length
            :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.VectorizationError
            If the embedding backend fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for one text (e.g. a query)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the vector dimension.  Constant for the provider's lifetime."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier such as ``"hash-surrogate"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
