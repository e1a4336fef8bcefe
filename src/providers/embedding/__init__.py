"""Embedding provider implementations (the vectorizer).

Two implementations of IEmbeddingProvider, chosen by ``EMBEDDING_BACKEND``:
    1. HashEmbeddingProvider   — deterministic surrogate (768 dims). Default;
       no model download, no API key, never fails.
    2. OpenAIEmbeddingProvider — any OpenAI-compatible embeddings API.
       Real semantic vectors, but requires an API key and can fail per call.

Vectors are unit-normalised (the API models already are) and stored with
each chunk; the store rejects vectors whose length differs from the active
provider's dimension.
"""

from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["HashEmbeddingProvider", "OpenAIEmbeddingProvider"]
