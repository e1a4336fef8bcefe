"""studyrag FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes :func:`build_components` so the CLI can assemble the same
object graph outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import openai
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.text_extractor import ITextExtractor
from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.extraction.pdf_extractor import PDFTextExtractor
from src.providers.extraction.tesseract_extractor import TesseractOCRExtractor
from src.providers.extraction.unconfigured_transcription import (
    UnconfiguredTranscriptionExtractor,
)
from src.providers.extraction.whisper_extractor import WhisperTranscriptionExtractor
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.store.sqlite_document_store import SQLiteDocumentStore
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.extractor_registry import ExtractorRegistry
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.task_queue import IngestionQueue
from src.services.ingestion.tracker import IngestionTracker
from src.services.qa_service import QAService
from src.services.retrieval_service import RetrievalService
from src.services.text_cleanup import TextCleanupService
from src.utils.errors import ConfigurationError
from src.utils.image_preprocessor import ImagePreprocessor
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_MB = 1024 * 1024


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_openai_client(app_settings: Settings) -> openai.AsyncOpenAI | None:
    """Create the shared OpenAI-compatible client, or ``None`` without a key.

    One client serves chat completions, transcription and embeddings.
    """
    if not app_settings.llm_configured:
        return None
    return openai.AsyncOpenAI(
        api_key=app_settings.openai_api_key,
        base_url=app_settings.openai_base_url,
        timeout=app_settings.openai_timeout_seconds,
    )


def _build_embedding_provider(
    app_settings: Settings,
    client: openai.AsyncOpenAI | None,
) -> IEmbeddingProvider:
    """Select the vectorizer named by ``EMBEDDING_BACKEND``.

    Raises
    ------
    ConfigurationError
        If the OpenAI backend is selected without an API key.
    """
    if app_settings.embedding_backend == "openai":
        if client is None:
            raise ConfigurationError(
                "EMBEDDING_BACKEND=openai requires OPENAI_API_KEY",
                provider_name="openai-embeddings",
            )
        return OpenAIEmbeddingProvider(
            client=client,
            model=app_settings.openai_embedding_model,
        )
    return HashEmbeddingProvider(dimension=app_settings.embedding_dimension)


def _build_extractors(
    app_settings: Settings,
    app_config: dict[str, Any],
    client: openai.AsyncOpenAI | None,
) -> ExtractorRegistry:
    """Register one extractor per media type.

    Audio falls back to an empty transcript when no speech-to-text key is
    configured, so audio uploads still complete (with LOW confidence).
    """
    ocr_config = app_config.get("ocr", {})
    max_audio_bytes = int(app_config.get("transcription", {}).get("max_file_mb", 10) * _MB)

    preprocessor = ImagePreprocessor(max_dimension=ocr_config.get("max_dimension", 2000))
    audio: ITextExtractor
    if client is not None:
        audio = WhisperTranscriptionExtractor(
            client=client,
            model=app_settings.openai_transcription_model,
            max_file_bytes=max_audio_bytes,
        )
    else:
        audio = UnconfiguredTranscriptionExtractor(max_file_bytes=max_audio_bytes)

    return ExtractorRegistry(
        [
            PDFTextExtractor(),
            TesseractOCRExtractor(preprocessor=preprocessor, lang=app_settings.tesseract_lang),
            audio,
        ]
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The store still needs ``await store.initialize()`` before use.
    """
    app_config = app_config if app_config is not None else load_config(settings=app_settings)

    # -- Shared resources --
    openai_client = _build_openai_client(app_settings)

    # -- Extraction --
    extractor_registry = _build_extractors(app_settings, app_config, openai_client)

    # -- Chat LLM (cleanup and answers) --
    llm_provider = (
        OpenAILLMProvider(client=openai_client, model=app_settings.openai_text_model)
        if openai_client is not None
        else None
    )
    cleanup_config = app_config.get("cleanup", {})
    cleanup_service = TextCleanupService(
        llm_provider,
        temperature=cleanup_config.get("temperature", 0.3),
        max_tokens=cleanup_config.get("max_tokens", 2000),
    )

    # -- Vectorizer + storage --
    embedding_provider = _build_embedding_provider(app_settings, openai_client)
    document_store = SQLiteDocumentStore(
        db_path=app_settings.database_path,
        embedding_dimension=embedding_provider.get_dimension(),
    )

    # -- Ingestion --
    chunker = TextChunker(
        chunk_size=app_settings.chunk_size,
        overlap=app_settings.chunk_overlap,
    )
    ingestion_tracker = IngestionTracker()
    ingestion_service = IngestionService(
        store=document_store,
        extractors=extractor_registry,
        cleanup_service=cleanup_service,
        embedding_provider=embedding_provider,
        chunker=chunker,
        tracker=ingestion_tracker,
        adaptive_chunking=app_settings.adaptive_chunking,
        embedding_concurrency=app_settings.embedding_concurrency,
    )
    ingestion_queue = IngestionQueue(
        ingestion_service,
        max_concurrency=app_settings.ingestion_concurrency,
    )

    # -- Retrieval --
    retrieval_service = RetrievalService(
        store=document_store,
        embedding_provider=embedding_provider,
        default_top_k=app_settings.retrieval_top_k,
        keyword_limit=app_settings.keyword_search_limit,
    )

    # -- Question answering --
    answer_config = app_config.get("answer", {})
    qa_service = QAService(
        retrieval_service,
        llm_provider,
        temperature=answer_config.get("temperature", 0.7),
        max_tokens=answer_config.get("max_tokens", 1000),
    )

    return {
        "settings": app_settings,
        "openai_client": openai_client,
        "extractor_registry": extractor_registry,
        "llm_provider": llm_provider,
        "cleanup_service": cleanup_service,
        "embedding_provider": embedding_provider,
        "document_store": document_store,
        "chunker": chunker,
        "ingestion_tracker": ingestion_tracker,
        "ingestion_service": ingestion_service,
        "ingestion_queue": ingestion_queue,
        "retrieval_service": retrieval_service,
        "qa_service": qa_service,
    }


async def close_components(components: dict[str, Any]) -> None:
    """Drain queued ingestion and release the shared HTTP client."""
    await components["ingestion_queue"].shutdown()
    client: openai.AsyncOpenAI | None = components.get("openai_client")
    if client is not None:
        await client.close()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = build_components(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["document_store"].initialize()

    _logger.info(
        "app_startup",
        version="0.1.0",
        environment=settings.app_env,
        embedding=components["embedding_provider"].get_provider_name(),
        cleanup_enabled=components["cleanup_service"].enabled,
        answering_enabled=components["qa_service"].enabled,
        media_types=[m.value for m in components["extractor_registry"].supported_types()],
    )

    yield

    await close_components(components)
    _logger.info("app_shutdown", message="Ingestion queue drained, clients closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="studyrag API",
        version="0.1.0",
        description=(
            "Upload course handouts, past questions, photos and lecture audio; "
            "extract and clean their text, index it as embedded chunks, and "
            "retrieve the most relevant passages for a question or answer it "
            "with an LLM."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
