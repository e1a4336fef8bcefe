"""Utility modules for studyrag.

Available utility modules (re-exported here for convenience):

- **confidence** -- Ordered LOW/MEDIUM/HIGH labels plus the mean-score
  thresholds used for aggregate retrieval confidence.
- **errors** -- Domain exception hierarchy rooted at StudyRAGError; each
  stage raises its own subclass so callers can degrade or propagate
  precisely without broad ``except Exception`` blocks.
- **image_preprocessor** -- Pillow grayscale/autocontrast/sharpen/resize
  pass applied before Tesseract OCR.
- **concurrency** -- Semaphore-bounded ``gather`` for per-chunk embedding.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **media_types** (not re-exported here, it depends on src.models) --
  MIME type classification and stored-file extensions.
"""

# -- Confidence labels -----------------------------------------------------
from src.utils.confidence import ConfidenceLevel, aggregate_confidence, score_to_level

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    CleanupError,
    ConfigurationError,
    DocumentNotFoundError,
    ExtractionError,
    LLMError,
    ProviderUnavailableError,
    StoreError,
    StudyRAGError,
    VectorDimensionError,
    VectorizationError,
)

# -- Image preprocessing for OCR -------------------------------------------
from src.utils.image_preprocessor import ImagePreprocessor

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, document_context, get_logger

__all__ = [
    "CleanupError",
    "ConfidenceLevel",
    "ConfigurationError",
    "DocumentNotFoundError",
    "ExtractionError",
    "ImagePreprocessor",
    "LLMError",
    "ProviderUnavailableError",
    "StoreError",
    "StudyRAGError",
    "VectorDimensionError",
    "VectorizationError",
    "aggregate_confidence",
    "configure_logging",
    "document_context",
    "get_logger",
    "score_to_level",
    "throttled_gather",
]
