"""Public interface definitions for all external service providers.

Every extractor, model API and storage backend in the studyrag pipeline is
accessed exclusively through the abstract base classes defined in this
package.  Concrete adapters implement these interfaces and are injected at
runtime, following the adapter pattern.

ADAPTER PATTERN:
    Instead of calling ``openai.chat.completions.create(...)`` directly in
    the services, they call ``llm_provider.complete(...)`` where
    ``llm_provider`` is any object implementing ``ILLMProvider``.  Swapping
    a backend means changing one construction site in ``src/main.py``, and
    unit tests inject fakes without network access.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ITextExtractor             →  PDFTextExtractor, TesseractOCRExtractor,
                                  WhisperTranscriptionExtractor,
                                  UnconfiguredTranscriptionExtractor
    IEmbeddingProvider         →  HashEmbeddingProvider,
                                  OpenAIEmbeddingProvider
    ILLMProvider               →  OpenAILLMProvider
    IDocumentStore             →  SQLiteDocumentStore,
                                  InMemoryDocumentStore
"""

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.text_extractor import ITextExtractor

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ITextExtractor",
]
