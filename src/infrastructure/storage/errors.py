"""
Storage error types.

Gateway operations wrap whatever the store client raised in one of the
StorageError subclasses and chain the original with ``raise ... from``.
"""

from typing import Optional


class StorageError(Exception):
    """Base exception for storage gateway operations."""

    def __init__(
        self,
        message: str,
        operation: str,
        key: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.task_id = task_id


class StorageUploadError(StorageError):
    """Local file unreadable or the remote put failed."""

    def __init__(self, message: str, key: Optional[str] = None, task_id: Optional[str] = None):
        super().__init__(f"Storage upload failed: {message}", "upload", key=key, task_id=task_id)


class StorageUrlError(StorageError):
    """Signing a download URL failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(f"Failed to generate download URL: {message}", "generate_download_url", key=key)


class StorageDeleteError(StorageError):
    """Remote delete failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(f"Failed to delete file: {message}", "delete", key=key)


class ObjectNotFoundError(Exception):
    """Raised by store clients when a key does not exist."""

    def __init__(self, key: str):
        super().__init__(f"Object not found: {key}")
        self.key = key


class ConfigError(Exception):
    """Storage configuration is missing or invalid."""
