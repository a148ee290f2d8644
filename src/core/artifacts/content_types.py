"""
Format-to-MIME lookup for downloaded media.

The format string is whatever the download job was asked to produce
("mp4", "m4a", ...). Anything we don't recognise is stored as a generic
binary blob rather than rejected.
"""

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    # Video containers
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "flv": "video/x-flv",
    # Audio containers and codecs
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "ogg": "audio/ogg",
    "opus": "audio/opus",
    "wma": "audio/x-ms-wma",
}


def resolve_content_type(format: str) -> str:
    """Map a format string to its MIME type, case-insensitively."""
    return CONTENT_TYPES.get(format.lower(), DEFAULT_CONTENT_TYPE)
