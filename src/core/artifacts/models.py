"""
Domain models for stored download artifacts.

These are plain values handed back to callers of the storage gateway.
They have no knowledge of boto3 or HTTP; the gateway translates store
responses into them.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of a successful upload.

    Frozen because it is a receipt, not something to edit. A failed upload
    never produces one; the gateway raises instead.
    """
    key: str
    file_name: str
    upload_time: datetime
    success: bool = True


@dataclass(frozen=True)
class FileInfo:
    """
    Read view of a stored object, rebuilt from its metadata and headers.

    file_name and upload_time come from metadata written at upload time,
    with fallbacks when that metadata is missing or damaged.
    """
    key: str
    task_id: str
    file_name: str
    upload_time: datetime
    content_type: str
    size: int

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "task_id": self.task_id,
            "file_name": self.file_name,
            "upload_time": self.upload_time.isoformat(),
            "content_type": self.content_type,
            "size": self.size,
        }


class LookupStatus(Enum):
    """Why a metadata lookup did or didn't produce a FileInfo."""
    FOUND = "found"
    NOT_FOUND = "not_found"      # Store says the key doesn't exist, or has no metadata
    UNAVAILABLE = "unavailable"  # Request failed; existence is unknown


@dataclass(frozen=True)
class FileInfoLookup:
    """
    Result of a metadata lookup that keeps "absent" apart from "failed".

    Callers that only care about best-effort info use
    StorageGateway.get_file_info, which collapses this to Optional[FileInfo].
    Callers that want to retry transient failures check ``status``.
    """
    status: LookupStatus
    info: Optional[FileInfo] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def retryable(self) -> bool:
        return self.status is LookupStatus.UNAVAILABLE
