"""Shared pytest fixtures for the studyrag test suite."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
from PIL import Image

from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.text_extractor import ITextExtractor
from src.models.document import Document, MediaType, SourceCategory
from src.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from src.providers.store.memory_document_store import InMemoryDocumentStore
from src.utils.errors import ExtractionError

# ---------------------------------------------------------------------------
# Sample text
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_handout_text() -> str:
    """Multi-paragraph lecture handout text (about 1.3k characters)."""
    return (
        "A linked list is a linear data structure in which elements are not "
        "stored at contiguous memory locations. Each element points to the next "
        "one using a reference.\n\n"
        "A singly linked list node holds a value and a pointer to the next node. "
        "The last node points to null, which marks the end of the list. Inserting "
        "at the head takes constant time.\n\n"
        "A doubly linked list node also stores a pointer to the previous node. "
        "This allows traversal in both directions at the cost of extra memory for "
        "each node.\n\n"
        "Stacks follow last-in first-out order. The push operation adds an element "
        "to the top and pop removes the most recently added element. Stacks can be "
        "implemented with arrays or with linked lists.\n\n"
        "Queues follow first-in first-out order. Enqueue adds at the rear and "
        "dequeue removes from the front. A circular buffer avoids shifting elements "
        "after every dequeue.\n\n"
        "Binary search works on sorted arrays. It halves the search interval on "
        "every comparison, giving logarithmic running time. It does not work on "
        "linked lists efficiently because they lack random access."
    )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(embedding_dimension=768)


@pytest.fixture
def hash_embedder() -> HashEmbeddingProvider:
    return HashEmbeddingProvider(dimension=768)


@pytest.fixture
def mock_llm() -> MagicMock:
    """Available LLM whose completion is an AsyncMock returning cleaned text."""
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="Cleaned lecture text.")
    llm.is_available = MagicMock(return_value=True)
    llm.get_provider_name = MagicMock(return_value="mock-llm")
    return llm


class FakeExtractor(ITextExtractor):
    """Extractor returning canned text, or raising when *error* is set."""

    def __init__(
        self,
        media_type: MediaType,
        text: str = "",
        error: Exception | None = None,
        available: bool = True,
    ) -> None:
        self._media_type = media_type
        self._text = text
        self._error = error
        self._available = available
        self.calls: list[str] = []

    @property
    def media_type(self) -> MediaType:
        return self._media_type

    async def extract(self, file_path: str) -> str:
        self.calls.append(file_path)
        if self._error is not None:
            raise self._error
        return self._text

    def get_provider_name(self) -> str:
        return f"fake-{self._media_type.value}"

    def is_available(self) -> bool:
        return self._available


@pytest.fixture
def fake_extractor_factory() -> Callable[..., FakeExtractor]:
    return FakeExtractor


@pytest.fixture
def failing_extractor() -> FakeExtractor:
    return FakeExtractor(
        MediaType.PDF,
        error=ExtractionError("corrupt file", provider_name="fake-pdf"),
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Factory for PENDING documents with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Document:
        counter["n"] += 1
        fields: dict[str, Any] = {
            "document_id": f"doc-{counter['n']:03d}",
            "media_type": MediaType.PDF,
            "mime_type": "application/pdf",
            "source_category": SourceCategory.HANDOUT,
            "course_code": "CSC201",
            "filename": f"doc-{counter['n']:03d}.pdf",
            "original_name": "notes.pdf",
            "size_bytes": 1024,
        }
        fields.update(overrides)
        return Document(**fields)

    return _make


# ---------------------------------------------------------------------------
# Binary fixtures
# ---------------------------------------------------------------------------


def build_pdf_bytes(pages: list[str]) -> bytes:
    """Render each string onto its own PDF page with PyMuPDF."""
    pdf = fitz.open()
    for text in pages:
        page = pdf.new_page()
        page.insert_text((72, 72), text)
    data = pdf.tobytes()
    pdf.close()
    return data


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """Two-page PDF with a text layer."""
    path = tmp_path / "lecture.pdf"
    path.write_bytes(build_pdf_bytes(["Recursion basics", "Base case and recursive case"]))
    return path


@pytest.fixture
def png_bytes() -> bytes:
    image = Image.new("RGB", (120, 60), color=(255, 255, 255))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
