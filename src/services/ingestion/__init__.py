"""Document ingestion pipeline for the studyrag chunk index.

Orchestrates the full pipeline: **extract -> clean -> chunk -> embed -> store**.

1. **Extract** (extractor_registry.py / ExtractorRegistry) -- picks the
   PDF, OCR or speech-to-text extractor for the document's media type.
2. **Clean** (src/services/text_cleanup.py) -- LLM repair of lossy OCR /
   transcription output; skipped for PDFs, non-fatal on failure.
3. **Chunk** (chunker.py / TextChunker) -- paragraph, sentence and hard
   splits into bounded windows with overlap context.
4. **Embed** (via IEmbeddingProvider) -- one vector per chunk; a failed
   chunk is stored without a vector.
5. **Store** (via IDocumentStore) -- chunks replaced wholesale, document
   written once at the terminal state.

IngestionQueue runs the pipeline as background tasks; IngestionTracker
exposes in-flight state.
"""

from src.services.ingestion.chunker import TextChunker, chunk_text, optimal_chunk_size
from src.services.ingestion.extractor_registry import ExtractorRegistry
from src.services.ingestion.ingestion_service import IngestionService, extraction_confidence
from src.services.ingestion.task_queue import IngestionQueue
from src.services.ingestion.tracker import IngestionTracker

__all__ = [
    "ExtractorRegistry",
    "IngestionQueue",
    "IngestionService",
    "IngestionTracker",
    "TextChunker",
    "chunk_text",
    "extraction_confidence",
    "optimal_chunk_size",
]
