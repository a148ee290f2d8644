"""
Stored artifact endpoints.

Files are addressed by (task_id, file_name), which maps one-to-one onto the
storage key ``downloads/{task_id}/{file_name}``.

Flow:
1. A download job finishes and registers its output: POST /api/v1/files
2. The client gets a link: GET /api/v1/files/{task_id}/{file_name}/url
   (or follows the redirect at GET /api/v1/files/{task_id}/{file_name})
3. Cleanup: DELETE /api/v1/files/{task_id}/{file_name}

Uploads only read files from the configured downloads directory.

Storage failures are turned into 502 responses by the app-level handler
in main.py.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from ...core.artifacts import LookupStatus, build_object_key
from ...infrastructure.storage.errors import StorageUrlError
from ...infrastructure.storage.gateway import SIGNED_URL_EXPIRY_SECONDS
from ..dependencies import ApiKey, SettingsDep, StorageGatewayDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadRequest(BaseModel):
    """A finished download sitting on this server's disk."""
    file_path: str = Field(min_length=1, description="Path of the file inside the downloads directory")
    task_id: str = Field(min_length=1, description="Download task identifier")
    format: str = Field(default="", description="Output format, e.g. mp4 or m4a")


class UploadResponse(BaseModel):
    """
    Stored key plus a download link.

    download_url is None when signing failed after the object was stored;
    GET /{task_id}/{file_name}/url can be retried for it.
    """
    success: bool
    key: str
    file_name: str
    upload_time: datetime
    download_url: Optional[str] = None
    expires_in: int = Field(description="Seconds the download URL stays valid")


class DownloadUrlResponse(BaseModel):
    key: str
    url: str
    expires_in: int = Field(description="Seconds the URL stays valid")


class FileInfoResponse(BaseModel):
    key: str
    task_id: str
    file_name: str
    upload_time: datetime
    content_type: str
    size: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a finished download",
    responses={403: {"description": "Path is outside the downloads directory"}},
)
async def upload_file(
    request: UploadRequest,
    gateway: StorageGatewayDep,
    settings: SettingsDep,
    _: ApiKey,
) -> UploadResponse:
    downloads_dir = settings.downloads_dir.resolve()
    path = Path(request.file_path).resolve()
    if not path.is_relative_to(downloads_dir):
        logger.warning(
            "Rejected upload outside downloads directory",
            extra={"file_path": request.file_path, "task_id": request.task_id},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="File path is outside the downloads directory",
        )

    result = await gateway.upload(path, request.task_id, request.format)

    # The object is stored either way; a link can be requested later
    try:
        url = await gateway.generate_download_url(result.key)
    except StorageUrlError:
        url = None
        logger.warning("Uploaded without a download URL", extra={"key": result.key})

    return UploadResponse(
        success=result.success,
        key=result.key,
        file_name=result.file_name,
        upload_time=result.upload_time,
        download_url=url,
        expires_in=SIGNED_URL_EXPIRY_SECONDS,
    )


@router.get(
    "/{task_id}/{file_name}/url",
    response_model=DownloadUrlResponse,
    summary="Get a time-limited download URL",
)
async def get_download_url(
    task_id: str,
    file_name: str,
    gateway: StorageGatewayDep,
    _: ApiKey,
) -> DownloadUrlResponse:
    key = build_object_key(task_id, file_name)
    url = await gateway.generate_download_url(key)
    return DownloadUrlResponse(key=key, url=url, expires_in=SIGNED_URL_EXPIRY_SECONDS)


@router.get(
    "/{task_id}/{file_name}/info",
    response_model=FileInfoResponse,
    summary="Get stored file metadata",
    responses={
        404: {"description": "No metadata for this file"},
        503: {"description": "Storage lookup failed; retry later"},
    },
)
async def get_file_info(
    task_id: str,
    file_name: str,
    gateway: StorageGatewayDep,
    _: ApiKey,
) -> FileInfoResponse:
    key = build_object_key(task_id, file_name)
    lookup = await gateway.lookup_file_info(key)

    if lookup.status is LookupStatus.UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage lookup failed",
        )
    if lookup.info is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found or expired",
        )

    return FileInfoResponse(**lookup.info.to_dict())


@router.get(
    "/{task_id}/{file_name}",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Redirect to the stored file",
)
async def download_file(
    task_id: str,
    file_name: str,
    gateway: StorageGatewayDep,
    _: ApiKey,
) -> RedirectResponse:
    """Send the client straight to the object store with a signed URL."""
    key = build_object_key(task_id, file_name)
    url = await gateway.generate_download_url(key)

    logger.info("Redirecting file download", extra={"key": key})

    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.delete(
    "/{task_id}/{file_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a stored file",
)
async def delete_file(
    task_id: str,
    file_name: str,
    gateway: StorageGatewayDep,
    _: ApiKey,
) -> None:
    await gateway.delete(build_object_key(task_id, file_name))
