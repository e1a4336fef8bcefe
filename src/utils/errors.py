"""Custom exception hierarchy for studyrag.

All application exceptions inherit from :class:`StudyRAGError`, which
carries an optional ``provider_name`` so handlers and log lines can tell
which backend (``"pymupdf"``, ``"tesseract"``, ``"openai"``, ``"sqlite"``)
caused the failure.

    StudyRAGError  (base)
    +-- ExtractionError          (source unreadable / unsupported / engine failed)
    +-- CleanupError             (AI cleanup unavailable or unusable)
    +-- VectorizationError       (embedding call failed for one text)
    +-- LLMError                 (any chat-completion failure)
    +-- StoreError               (persistence failure)
    |   +-- VectorDimensionError (vector length does not match the index)
    +-- DocumentNotFoundError    (unknown document identifier)
    +-- ConfigurationError       (startup / missing config)
    +-- ProviderUnavailableError (required service not configured or unreachable)

Ingestion converts Extraction/Cleanup/Vectorization errors into degraded
persisted state.  Retrieval lets StoreError and VectorizationError reach
the caller, who is waiting on the answer.
"""


class StudyRAGError(Exception):
    """Base exception for all studyrag errors.

    ``__str__`` prefixes the provider name in brackets, e.g.
    ``[tesseract] OCR engine returned no output``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(StudyRAGError):
    """Raised when a text extractor cannot produce text from a source file."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CleanupError(StudyRAGError):
    """Raised when AI-assisted cleanup of extracted text fails."""

    def __init__(
        self,
        message: str = "Text cleanup failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorizationError(StudyRAGError):
    """Raised when a text cannot be turned into an embedding vector."""

    def __init__(
        self,
        message: str = "Vectorization failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(StudyRAGError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class StoreError(StudyRAGError):
    """Raised when the document/chunk store cannot complete an operation."""

    def __init__(
        self,
        message: str = "Document store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorDimensionError(StoreError):
    """Raised when a chunk vector does not have the index dimension."""

    def __init__(
        self,
        message: str = "Vector dimension mismatch",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(StudyRAGError):
    """Raised when a document identifier does not exist in the store."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / provider errors
# ---------------------------------------------------------------------------

class ConfigurationError(StudyRAGError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(StudyRAGError):
    """Raised when a required external service is not configured or unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
