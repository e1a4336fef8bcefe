"""Tesseract OCR extractor for photographed or scanned course material.

Wraps pytesseract with a single Pillow preprocessing pass (grayscale,
autocontrast, sharpen, downscale).  OCR is lossy, so the ingestion
pipeline assigns text from this extractor LOW confidence until AI cleanup
succeeds.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

import pytesseract
from PIL import Image

from src.interfaces.text_extractor import ITextExtractor
from src.models.document import MediaType
from src.utils.errors import ExtractionError
from src.utils.image_preprocessor import ImagePreprocessor
from src.utils.logging import get_logger


class TesseractOCRExtractor(ITextExtractor):
    """Image-to-text extractor backed by Google Tesseract.

    Parameters
    ----------
    preprocessor:
        Image preprocessing pipeline applied before OCR.
    lang:
        Tesseract language code(s), e.g. ``"eng"`` or ``"eng+fra"``.
    """

    def __init__(self, preprocessor: ImagePreprocessor, lang: str = "eng") -> None:
        self._preprocessor = preprocessor
        self._lang = lang
        self._logger = get_logger(__name__)

    @property
    def media_type(self) -> MediaType:
        return MediaType.IMAGE

    async def extract(self, file_path: str) -> str:
        if not Path(file_path).is_file():
            raise ExtractionError(
                f"Image file not found: {file_path}",
                provider_name=self.get_provider_name(),
            )

        start = time.perf_counter()
        try:
            text = await asyncio.to_thread(self._ocr_file, file_path)
        except ExtractionError:
            raise
        except Exception as exc:
            self._logger.error(
                "ocr_extraction_failed",
                provider="tesseract",
                file_path=file_path,
                error=str(exc),
            )
            raise ExtractionError(
                f"Tesseract OCR failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        self._logger.info(
            "ocr_extraction_complete",
            provider="tesseract",
            chars=len(text),
            processing_time=round(time.perf_counter() - start, 3),
        )
        return text

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that the Tesseract binary can be found."""
        try:
            pytesseract.get_tesseract_version()
            return True
        except pytesseract.TesseractNotFoundError:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ocr_file(self, file_path: str) -> str:
        try:
            with Image.open(file_path) as original:
                original.load()
                image = self._prepare(original)
        except OSError as exc:
            raise ExtractionError(
                f"Unreadable image: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return pytesseract.image_to_string(image, lang=self._lang)

    def _prepare(self, original: Image.Image) -> Image.Image:
        """Preprocess *original*, falling back to the unprocessed image on failure."""
        try:
            return self._preprocessor.prepare(original)
        except (OSError, ValueError) as exc:
            self._logger.warning("ocr_preprocessing_failed", error=str(exc))
            return original.copy()
