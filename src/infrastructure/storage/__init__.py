"""
Object storage integration for downloaded artifacts.

Supports R2 (Cloudflare) and S3 (AWS) via S3-compatible API.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockObjectStore,
    ObjectResponse,
    ObjectStore,
    R2ObjectStore,
    StorageConfig,
    create_object_store,
)
from .errors import (
    ConfigError,
    ObjectNotFoundError,
    StorageDeleteError,
    StorageError,
    StorageUploadError,
    StorageUrlError,
)
from .gateway import SIGNED_URL_EXPIRY_SECONDS, StorageGateway

__all__ = [
    "ConfigError",
    "MockObjectStore",
    "ObjectNotFoundError",
    "ObjectResponse",
    "ObjectStore",
    "R2ObjectStore",
    "SIGNED_URL_EXPIRY_SECONDS",
    "StorageConfig",
    "StorageDeleteError",
    "StorageError",
    "StorageGateway",
    "StorageUploadError",
    "StorageUrlError",
    "create_object_store",
]
