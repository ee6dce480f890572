"""Audio container kinds and MIME type lookup."""

from __future__ import annotations

from enum import Enum


class AudioContainer(Enum):
    """Supported audio containers, valued by file extension."""

    WEBM = "webm"
    MP4 = "mp4"
    OGG = "ogg"
    WAV = "wav"
    MP3 = "mp3"
    FLAC = "flac"
    AAC = "aac"


_MIME_TYPES = {
    "audio/webm": AudioContainer.WEBM,
    "video/webm": AudioContainer.WEBM,
    "audio/mp4": AudioContainer.MP4,
    "video/mp4": AudioContainer.MP4,
    "audio/ogg": AudioContainer.OGG,
    "application/ogg": AudioContainer.OGG,
    "audio/wav": AudioContainer.WAV,
    "audio/x-wav": AudioContainer.WAV,
    "audio/mpeg": AudioContainer.MP3,
    "audio/mp3": AudioContainer.MP3,
    "audio/flac": AudioContainer.FLAC,
    "audio/x-flac": AudioContainer.FLAC,
    "audio/aac": AudioContainer.AAC,
    "audio/aacp": AudioContainer.AAC,
}


def extension_for_mime(mime: str) -> str | None:
    """Return the file extension hint for a MIME type, or None if unknown."""
    container = _MIME_TYPES.get(mime)
    return container.value if container is not None else None