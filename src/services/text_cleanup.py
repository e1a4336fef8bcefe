"""AI-assisted cleanup of OCR and speech-to-text output.

Sends noisy extracted text to the configured LLM with instructions to fix
recognition errors while keeping meaning, terminology and paragraph
structure.  Cleanup is best-effort: any failure returns the original text
unchanged, so the ingestion pipeline never aborts because of it.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import CleanupError, LLMError
from src.utils.logging import get_logger

_SYSTEM_PROMPT = (
    "You are a text cleanup assistant. Clean and reconstruct OCR text while:\n"
    "1. Fixing obvious spelling errors and OCR mistakes\n"
    "2. Maintaining the original meaning and structure\n"
    "3. Preserving technical terms, names, and definitions exactly\n"
    "4. Keeping paragraph structure"
)

_USER_PROMPT_TEMPLATE = "MESSY TEXT:\n{text}\n\nCLEANED TEXT:"


@dataclass(frozen=True)
class CleanupResult:
    """Output of one cleanup attempt.

    ``applied`` is ``True`` only when the LLM returned usable text;
    otherwise ``text`` is the input, untouched.
    """

    text: str
    applied: bool


class TextCleanupService:
    """Repairs lossy extraction output with an LLM.

    Parameters
    ----------
    llm_provider:
        Chat-completion backend, or ``None`` to disable cleanup.
    temperature:
        Sampling temperature for the cleanup request.
    max_tokens:
        Upper bound on the cleaned text's length in tokens.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider | None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def enabled(self) -> bool:
        return self._llm is not None and self._llm.is_available()

    async def clean(self, raw_text: str) -> CleanupResult:
        """Return cleaned text, or *raw_text* unchanged if cleanup fails.

        Provider failures (:class:`LLMError`, :class:`CleanupError`) are
        logged and absorbed.
        """
        if not raw_text.strip():
            return CleanupResult(text=raw_text, applied=False)
        if not self.enabled:
            self._logger.debug("text_cleanup_disabled")
            return CleanupResult(text=raw_text, applied=False)

        try:
            cleaned = await self._request_cleanup(self._llm, raw_text)
        except (LLMError, CleanupError) as exc:
            self._logger.warning(
                "text_cleanup_failed",
                provider=exc.provider_name,
                error=str(exc),
            )
            return CleanupResult(text=raw_text, applied=False)

        self._logger.info(
            "text_cleanup_complete",
            input_chars=len(raw_text),
            output_chars=len(cleaned),
        )
        return CleanupResult(text=cleaned, applied=True)

    async def _request_cleanup(self, llm: ILLMProvider, raw_text: str) -> str:
        response = await llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=_USER_PROMPT_TEMPLATE.format(text=raw_text),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        cleaned = response.strip()
        if not cleaned:
            raise CleanupError(
                "LLM returned blank cleanup output",
                provider_name=llm.get_provider_name(),
            )
        return cleaned
