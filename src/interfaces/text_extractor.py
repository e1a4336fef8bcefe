"""Abstract base class for source-file text extractors.

One concrete extractor exists per extraction family: PDF text layer,
image OCR, and audio speech-to-text.  The ingestion pipeline never talks to
PyMuPDF, Tesseract or a transcription API directly; it asks the
:class:`~src.services.ingestion.extractor_registry.ExtractorRegistry` for
the extractor matching a document's :class:`~src.models.document.MediaType`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import MediaType


# Concrete implementations: PDFTextExtractor, TesseractOCRExtractor,
#   WhisperTranscriptionExtractor, UnconfiguredTranscriptionExtractor
# Located in: src/providers/extraction/
class ITextExtractor(ABC):
    """Contract for services that turn a stored upload into raw text.

    Extractors return text exactly as the engine produced it; cleanup and
    normalization happen later in the pipeline.
    """

    @property
    @abstractmethod
    def media_type(self) -> MediaType:
        """The media type this extractor handles."""

    @abstractmethod
    async def extract(self, file_path: str) -> str:
        """Extract raw text from the file at *file_path*.

        Returns
        -------
        str
            The extracted text.  An empty string is a valid result and means
            the source contained no recognisable text.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the file is missing or unreadable, or the engine fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier such as ``"pymupdf"`` or ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the engine (binary, credentials) is usable."""
