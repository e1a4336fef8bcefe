"""PDF text-layer extractor.

Reads PDF files using PyMuPDF (fitz) and returns the text of every page,
in page order, separated by blank lines so each page starts a new
paragraph for the chunker.  Scanned PDFs without a text layer yield an
empty string, which the ingestion pipeline treats as "no usable content".
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.interfaces.text_extractor import ITextExtractor
from src.models.document import MediaType
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFTextExtractor(ITextExtractor):
    """Extracts the embedded text layer of a PDF with PyMuPDF."""

    @property
    def media_type(self) -> MediaType:
        return MediaType.PDF

    async def extract(self, file_path: str) -> str:
        if not Path(file_path).is_file():
            raise ExtractionError(
                f"PDF file not found: {file_path}",
                provider_name=self.get_provider_name(),
            )
        # PyMuPDF is synchronous and CPU-bound.
        pages = await asyncio.to_thread(self._extract_pages, file_path)
        text = "\n\n".join(pages)
        logger.info(
            "pdf_text_extracted",
            file_path=file_path,
            pages_with_text=len(pages),
            chars=len(text),
        )
        return text

    def get_provider_name(self) -> str:
        return "pymupdf"

    def is_available(self) -> bool:
        return True

    def _extract_pages(self, file_path: str) -> list[str]:
        """Return the stripped text of each page that has any."""
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            raise ExtractionError(
                f"Failed to open PDF: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        except Exception as exc:
            raise ExtractionError(
                f"Failed to extract text from PDF: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", file_path=file_path)
        return pages
