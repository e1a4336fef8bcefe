"""Transcription stand-in used when no speech-to-text backend is configured.

Audio uploads are still accepted and stored.  The file is validated the
same way the real extractor validates it, and an empty transcript is
returned so the document completes with no chunks and LOW confidence; it
can be re-ingested once credentials are configured.
"""

from __future__ import annotations

import structlog

from src.interfaces.text_extractor import ITextExtractor
from src.models.document import MediaType
from src.providers.extraction.whisper_extractor import (
    DEFAULT_MAX_AUDIO_BYTES,
    check_audio_file,
)

logger = structlog.get_logger(logger_name=__name__)


class UnconfiguredTranscriptionExtractor(ITextExtractor):
    """Returns an empty transcript for every valid audio file."""

    def __init__(self, max_file_bytes: int = DEFAULT_MAX_AUDIO_BYTES) -> None:
        self._max_file_bytes = max_file_bytes

    @property
    def media_type(self) -> MediaType:
        return MediaType.AUDIO

    async def extract(self, file_path: str) -> str:
        check_audio_file(file_path, self._max_file_bytes, self.get_provider_name())
        logger.warning("transcription_not_configured", file_path=file_path)
        return ""

    def get_provider_name(self) -> str:
        return "unconfigured_transcription"

    def is_available(self) -> bool:
        return False
