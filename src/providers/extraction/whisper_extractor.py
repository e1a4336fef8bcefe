"""Speech-to-text extractor backed by an OpenAI-compatible transcription API.

# ─── CLOUD TRANSCRIPTION ────────────────────────────────────────────
#
# Lecture recordings and voice notes are sent to the audio
# transcriptions endpoint (Groq's ``whisper-large-v3`` by default, or
# OpenAI's ``whisper-1``).  Recordings are capped at 10 MB, roughly three
# minutes of MP3, before any network call is made.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path

import openai
import structlog

from src.interfaces.text_extractor import ITextExtractor
from src.models.document import MediaType
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_AUDIO_BYTES = 10 * 1024 * 1024


def check_audio_file(file_path: str, max_bytes: int, provider_name: str) -> int:
    """Validate that *file_path* exists and is within *max_bytes*.

    Returns the file size in bytes.

    Raises
    ------
    ExtractionError
        If the file is missing or too large.
    """
    path = Path(file_path)
    if not path.is_file():
        raise ExtractionError("Audio file not found", provider_name=provider_name)
    size = path.stat().st_size
    if size > max_bytes:
        raise ExtractionError(
            f"Audio file too large ({size / (1024 * 1024):.1f} MB). "
            f"Maximum is {max_bytes / (1024 * 1024):.0f} MB.",
            provider_name=provider_name,
        )
    return size


class WhisperTranscriptionExtractor(ITextExtractor):
    """Audio-to-text extractor using ``audio.transcriptions.create``.

    Parameters
    ----------
    client:
        Shared async OpenAI client.  Constructed once at startup and
        injected so tests can substitute a mock.
    model:
        Transcription model name.
    max_file_bytes:
        Upper bound on accepted audio size.
    """

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str = "whisper-large-v3",
        max_file_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
    ) -> None:
        self._client = client
        self._model = model
        self._max_file_bytes = max_file_bytes

    @property
    def media_type(self) -> MediaType:
        return MediaType.AUDIO

    async def extract(self, file_path: str) -> str:
        size = check_audio_file(file_path, self._max_file_bytes, self.get_provider_name())

        try:
            with open(file_path, "rb") as f:
                response = await self._client.audio.transcriptions.create(
                    model=self._model,
                    file=f,
                )
        except openai.APIError as exc:
            raise ExtractionError(
                f"Transcription API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = response.text or ""
        logger.info(
            "transcription_complete",
            model=self._model,
            size_bytes=size,
            chars=len(text),
        )
        return text

    def get_provider_name(self) -> str:
        return "whisper_api"

    def is_available(self) -> bool:
        return bool(self._client.api_key)
