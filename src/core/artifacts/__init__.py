"""
Downloaded-artifact domain.

Value objects describing stored artifacts, the object key scheme, and the
static format-to-content-type table. Nothing here talks to the network.
"""

from .content_types import DEFAULT_CONTENT_TYPE, resolve_content_type
from .keys import (
    KEY_PREFIX,
    build_object_key,
    decode_file_name,
    encode_file_name,
    file_name_from_key,
    format_upload_time,
    parse_upload_time,
    task_id_from_key,
)
from .models import FileInfo, FileInfoLookup, LookupStatus, UploadResult

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "KEY_PREFIX",
    "FileInfo",
    "FileInfoLookup",
    "LookupStatus",
    "UploadResult",
    "build_object_key",
    "decode_file_name",
    "encode_file_name",
    "file_name_from_key",
    "format_upload_time",
    "parse_upload_time",
    "resolve_content_type",
    "task_id_from_key",
]
