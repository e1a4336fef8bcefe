"""Dispatch from a document's media type to its text extractor."""

from __future__ import annotations

import structlog

from src.interfaces.text_extractor import ITextExtractor
from src.models.document import MediaType
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class ExtractorRegistry:
    """Holds at most one :class:`ITextExtractor` per :class:`MediaType`.

    Registering a second extractor for the same media type replaces the
    first, which lets tests swap a real engine for a fake.
    """

    def __init__(self, extractors: list[ITextExtractor] | None = None) -> None:
        self._extractors: dict[MediaType, ITextExtractor] = {}
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: ITextExtractor) -> None:
        if extractor.media_type is MediaType.UNKNOWN:
            raise ValueError("Cannot register an extractor for MediaType.UNKNOWN")
        self._extractors[extractor.media_type] = extractor
        logger.debug(
            "extractor_registered",
            media_type=extractor.media_type.value,
            provider=extractor.get_provider_name(),
        )

    def get(self, media_type: MediaType) -> ITextExtractor:
        """Return the extractor for *media_type*.

        Raises
        ------
        ExtractionError
            If the media type is unsupported or has no registered extractor.
        """
        extractor = self._extractors.get(media_type)
        if extractor is None:
            raise ExtractionError(f"Unsupported media type: {media_type.value}")
        return extractor

    def supported_types(self) -> list[MediaType]:
        return list(self._extractors)

    def __contains__(self, media_type: object) -> bool:
        return media_type in self._extractors
