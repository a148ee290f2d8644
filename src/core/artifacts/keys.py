"""
Object key scheme and metadata encoding.

Keys look like ``downloads/{task_id}/{file_name}``. The file name goes into
the key verbatim; only the copy stored in object metadata is
percent-encoded, because S3 metadata values must be ASCII.
"""

import re
from datetime import datetime
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote, unquote

KEY_PREFIX = "downloads"

# Same unreserved set as JavaScript's encodeURIComponent.
_UNRESERVED = "-_.!~*'()"

# A '%' not followed by two hex digits.
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def build_object_key(task_id: str, file_name: str) -> str:
    """Build the storage key for a task's artifact."""
    return f"{KEY_PREFIX}/{task_id}/{file_name}"


def file_name_from_key(key: str) -> str:
    """Last path segment of a key."""
    return PurePosixPath(key).name


def task_id_from_key(key: str) -> Optional[str]:
    """
    Extract the task ID from a key that follows the download scheme.

    Returns None for keys outside ``downloads/{task_id}/{file_name}``.
    """
    parts = key.split("/")
    if len(parts) == 3 and parts[0] == KEY_PREFIX and parts[1]:
        return parts[1]
    return None


def encode_file_name(file_name: str) -> str:
    return quote(file_name, safe=_UNRESERVED)


def decode_file_name(encoded: str) -> str:
    """
    Reverse encode_file_name.

    Raises ValueError on a stray '%' or on escapes that are not valid
    UTF-8. unquote() on its own passes stray '%' through unchanged.
    """
    if _BAD_ESCAPE.search(encoded):
        raise ValueError(f"Malformed percent-encoding: {encoded!r}")
    # errors="strict" raises UnicodeDecodeError (a ValueError)
    return unquote(encoded, errors="strict")


def format_upload_time(moment: datetime) -> str:
    return moment.isoformat()


def parse_upload_time(text: Optional[str]) -> Optional[datetime]:
    """Parse a stored upload timestamp; None if missing or unparseable."""
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
