"""
Storage gateway for downloaded artifacts.

The gateway is the only thing the rest of the service uses to persist
finished downloads, hand out time-limited links to them, and clean them up.
It keeps no state between calls: every operation is one live round trip to
the object store, which is the only source of truth.

Error policy:
- upload, generate_download_url and delete wrap failures in a
  StorageError subclass, log them, and re-raise with the cause chained.
- get_file_info is best-effort and returns None on any failure.
- Nothing is retried here.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from ...core.artifacts import (
    DEFAULT_CONTENT_TYPE,
    FileInfo,
    FileInfoLookup,
    LookupStatus,
    UploadResult,
    build_object_key,
    decode_file_name,
    encode_file_name,
    file_name_from_key,
    format_upload_time,
    parse_upload_time,
    resolve_content_type,
    task_id_from_key,
)
from .client import ObjectResponse, ObjectStore
from .errors import (
    ObjectNotFoundError,
    StorageDeleteError,
    StorageUploadError,
    StorageUrlError,
)

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRY_SECONDS = 3600

HEALTH_CHECK_PREFIX = "health-check"

# Metadata names as written. S3 hands them back lowercased.
META_TASK_ID = "taskId"
META_UPLOAD_TIME = "uploadTime"
META_ORIGINAL_NAME = "originalName"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _metadata_value(metadata: dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive metadata lookup."""
    if name in metadata:
        return metadata[name]
    lowered = name.lower()
    for key, value in metadata.items():
        if key.lower() == lowered:
            return value
    return None


class StorageGateway:
    """
    Stateless façade over an ObjectStore.

    The store is injected so the same gateway runs against R2 in production
    and the in-memory store in tests and local development.
    """

    def __init__(
        self,
        store: ObjectStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def bucket_name(self) -> str:
        return self._store.bucket_name

    async def upload(
        self,
        file_path: Union[str, Path],
        task_id: str,
        format: str,
    ) -> UploadResult:
        """
        Upload a finished download under ``downloads/{task_id}/{file_name}``.

        The whole file is read into memory and sent in a single put, which
        overwrites any object already at that key.

        Raises:
            StorageUploadError: The file couldn't be read or the put failed.
                The original exception is available as ``__cause__``.
        """
        path = Path(file_path)
        file_name = path.name
        key = build_object_key(task_id, file_name)
        content_type = resolve_content_type(format)

        try:
            if not task_id:
                raise ValueError("task_id must not be empty")

            body = await asyncio.to_thread(path.read_bytes)
            upload_time = self._clock()

            await self._store.put_object(
                key,
                body,
                content_type=content_type,
                metadata={
                    META_TASK_ID: task_id,
                    META_UPLOAD_TIME: format_upload_time(upload_time),
                    META_ORIGINAL_NAME: encode_file_name(file_name),
                },
            )
        except Exception as e:
            logger.error(
                "Storage upload failed",
                extra={
                    "task_id": task_id,
                    "file_path": str(path),
                    "key": key,
                    "error": str(e),
                },
                exc_info=e,
            )
            raise StorageUploadError(str(e), key=key, task_id=task_id) from e

        logger.info(
            "File uploaded to storage",
            extra={
                "task_id": task_id,
                "file_name": file_name,
                "bucket": self.bucket_name,
                "key": key,
                "size_bytes": len(body),
            },
        )

        return UploadResult(key=key, file_name=file_name, upload_time=upload_time)

    async def generate_download_url(self, key: str) -> str:
        """
        Sign a GET URL for key, valid for one hour from now.

        The key isn't checked for existence. A URL for a missing key is
        still issued and fails when fetched.

        Raises:
            StorageUrlError: Signing failed.
        """
        try:
            if not key:
                raise ValueError("key must not be empty")
            return await self._store.presign_get(key, expires_in=SIGNED_URL_EXPIRY_SECONDS)
        except Exception as e:
            logger.error(
                "Failed to generate download URL",
                extra={"key": key, "error": str(e)},
            )
            raise StorageUrlError(str(e), key=key) from e

    async def delete(self, key: str) -> None:
        """
        Delete the object at key. Deleting a missing key is not an error.

        Raises:
            StorageDeleteError: The store rejected or failed the request.
        """
        try:
            await self._store.delete_object(key)
        except Exception as e:
            logger.error(
                "Failed to delete file from storage",
                extra={"key": key, "error": str(e)},
            )
            raise StorageDeleteError(str(e), key=key) from e

        logger.info("File deleted from storage", extra={"key": key})

    async def lookup_file_info(self, key: str) -> FileInfoLookup:
        """
        Fetch an object's metadata, keeping "absent" apart from "failed".

        Every non-FOUND outcome is logged at error level.
        """
        try:
            response = await self._store.get_object(key)
        except ObjectNotFoundError as e:
            logger.error(
                "Failed to get storage file info",
                extra={"key": key, "error": str(e), "status": LookupStatus.NOT_FOUND.value},
            )
            return FileInfoLookup(status=LookupStatus.NOT_FOUND, error=str(e))
        except Exception as e:
            logger.error(
                "Failed to get storage file info",
                extra={"key": key, "error": str(e), "status": LookupStatus.UNAVAILABLE.value},
            )
            return FileInfoLookup(status=LookupStatus.UNAVAILABLE, error=str(e))

        if response.metadata is None:
            logger.error(
                "Failed to get storage file info",
                extra={"key": key, "error": "object has no metadata"},
            )
            return FileInfoLookup(status=LookupStatus.NOT_FOUND, error="object has no metadata")

        return FileInfoLookup(status=LookupStatus.FOUND, info=self._to_file_info(response))

    async def get_file_info(self, key: str) -> Optional[FileInfo]:
        """
        Best-effort metadata read.

        None means "no info available", not proof the object is gone:
        transient failures also come back as None. Use lookup_file_info to
        tell the two apart.
        """
        lookup = await self.lookup_file_info(key)
        return lookup.info

    async def check_health(self) -> bool:
        """
        Probe the bucket by writing and removing a tiny object.

        Returns False instead of raising so readiness checks can report it.
        """
        key = f"{HEALTH_CHECK_PREFIX}/{int(time.time() * 1000)}.txt"
        try:
            await self._store.put_object(
                key,
                b"health check",
                content_type="text/plain",
                metadata={},
            )
            await self._store.delete_object(key)
        except Exception as e:
            logger.error(
                "Storage health check failed",
                extra={"key": key, "error": str(e)},
            )
            return False
        return True

    def _to_file_info(self, response: ObjectResponse) -> FileInfo:
        metadata = response.metadata or {}
        key = response.key

        task_id = _metadata_value(metadata, META_TASK_ID)
        if task_id is None:
            task_id = task_id_from_key(key) or ""

        file_name = file_name_from_key(key)
        encoded_name = _metadata_value(metadata, META_ORIGINAL_NAME)
        if encoded_name:
            try:
                file_name = decode_file_name(encoded_name)
            except ValueError:
                logger.warning(
                    "Malformed originalName metadata, using key name",
                    extra={"key": key, "original_name": encoded_name},
                )

        upload_time = parse_upload_time(_metadata_value(metadata, META_UPLOAD_TIME))
        if upload_time is None:
            upload_time = self._clock()

        return FileInfo(
            key=key,
            task_id=task_id,
            file_name=file_name,
            upload_time=upload_time,
            content_type=response.content_type or DEFAULT_CONTENT_TYPE,
            size=response.content_length or 0,
        )
