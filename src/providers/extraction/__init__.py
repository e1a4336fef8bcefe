"""Text extractor implementations, one per extraction family.

    - PDFTextExtractor                  — PyMuPDF text layer (MEDIUM confidence)
    - TesseractOCRExtractor             — Tesseract OCR on images (LOW, lossy)
    - WhisperTranscriptionExtractor     — OpenAI-compatible speech-to-text (LOW, lossy)
    - UnconfiguredTranscriptionExtractor — empty transcript when no STT key is set

main.py registers one extractor per media type in the ExtractorRegistry.
"""

from src.providers.extraction.pdf_extractor import PDFTextExtractor
from src.providers.extraction.tesseract_extractor import TesseractOCRExtractor
from src.providers.extraction.unconfigured_transcription import (
    UnconfiguredTranscriptionExtractor,
)
from src.providers.extraction.whisper_extractor import WhisperTranscriptionExtractor

__all__ = [
    "PDFTextExtractor",
    "TesseractOCRExtractor",
    "UnconfiguredTranscriptionExtractor",
    "WhisperTranscriptionExtractor",
]
