"""Upload MIME type classification.

Maps the MIME type declared at upload time onto the :class:`MediaType`
that selects a text extractor, and onto the file extension used when the
upload is stored on disk.
"""

from __future__ import annotations

from src.models.document import MediaType

# MIME types accepted by the upload endpoint.
ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/webp",
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
        "audio/webm",
    }
)

_MIME_TO_EXTENSION: dict[str, str] = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
}


def detect_media_type(mime_type: str | None) -> MediaType:
    """Classify *mime_type* as pdf, image, audio, or unknown."""
    if not mime_type:
        return MediaType.UNKNOWN
    mime = mime_type.split(";", 1)[0].strip().lower()
    if mime == "application/pdf":
        return MediaType.PDF
    if mime.startswith("image/"):
        return MediaType.IMAGE
    if mime.startswith("audio/"):
        return MediaType.AUDIO
    return MediaType.UNKNOWN


def extension_for(mime_type: str) -> str:
    """Return the stored-file extension for *mime_type* (``""`` if unknown)."""
    return _MIME_TO_EXTENSION.get(mime_type.lower(), "")


def is_allowed(mime_type: str | None) -> bool:
    """Return ``True`` if uploads of *mime_type* are accepted."""
    return bool(mime_type) and mime_type.split(";", 1)[0].strip().lower() in ALLOWED_MIME_TYPES
