"""
Object store clients for download artifacts.

Supports Cloudflare R2 (S3-compatible) with a mock mode for local development.
The gateway only sees the ObjectStore protocol, so swapping R2 for AWS S3,
MinIO, or the in-memory mock needs no gateway changes.

Clients are built once and shared for the life of the process. The boto3
client owns the connection pool and is safe to share across threads.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Union
from urllib.parse import quote

from .errors import ConfigError, ObjectNotFoundError

logger = logging.getLogger(__name__)

# Error codes S3-compatible stores use for a missing key. GetObject says
# NoSuchKey; some endpoints answer with a bare 404.
_NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


@dataclass
class StorageConfig:
    """
    Configuration for R2/S3-compatible storage.

    TLS options apply to this client only. ``ca_bundle`` adds a trust anchor
    for the store endpoint; ``verify_ssl=False`` turns verification off for
    this client and nothing else.
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    region: str = "auto"  # R2 uses 'auto' for region
    verify_ssl: bool = True
    ca_bundle: Optional[str] = None
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_pool_connections: int = 50

    def validate(self) -> None:
        """Raise ConfigError naming every missing required field."""
        missing = [
            name
            for name in ("access_key_id", "secret_access_key", "bucket_name", "endpoint_url")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing storage configuration: {', '.join(missing)}")

    @property
    def verify(self) -> Union[bool, str]:
        """Value for boto3's ``verify`` argument."""
        if self.ca_bundle:
            return self.ca_bundle
        return self.verify_ssl


@dataclass
class ObjectResponse:
    """
    What a GET told us about an object.

    ``metadata`` is None when the store returned no user-metadata block at
    all, which is different from an empty one.
    """
    key: str
    metadata: Optional[dict[str, str]]
    content_type: Optional[str] = None
    content_length: Optional[int] = None


class ObjectStore(Protocol):
    """
    Protocol for object storage operations.

    Implementations raise ObjectNotFoundError from get_object for missing
    keys and let every other failure propagate unchanged.
    """

    bucket_name: str

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        """Store body under key, replacing any existing object."""
        ...

    async def get_object(self, key: str) -> ObjectResponse:
        """Fetch an object and report its metadata and headers."""
        ...

    async def delete_object(self, key: str) -> None:
        """Delete key. Succeeds if the key is already gone."""
        ...

    async def presign_get(self, key: str, expires_in: int) -> str:
        """Sign a GET URL for key, valid for expires_in seconds."""
        ...


def _error_code(exc: Exception) -> Optional[str]:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    return response.get("Error", {}).get("Code")


class R2ObjectStore:
    """
    Cloudflare R2 object store backed by boto3.

    boto3 is synchronous, so each network call runs in a worker thread via
    asyncio.to_thread. Presigning is local computation and runs inline.

    botocore retries are switched off (total_max_attempts=1). Callers decide
    whether a failed operation is worth repeating.
    """

    def __init__(self, config: StorageConfig) -> None:
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for R2 storage. Install with: pip install boto3"
            )

        config.validate()
        self._config = config
        self.bucket_name = config.bucket_name

        # R2 requires v4 signatures and path-style addressing
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            max_pool_connections=config.max_pool_connections,
            tcp_keepalive=True,
            retries={"total_max_attempts": 1},
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            verify=config.verify,
            config=boto_config,
        )

        if config.verify is False:
            logger.warning(
                "TLS verification disabled for object store client",
                extra={"endpoint": config.endpoint_url},
            )

        logger.info(
            "Initialized R2 object store",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
                "max_pool_connections": config.max_pool_connections,
            },
        )

    @property
    def s3_client(self) -> Any:
        return self._s3_client

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        await asyncio.to_thread(
            self._s3_client.put_object,
            Bucket=self.bucket_name,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata,
        )

    async def get_object(self, key: str) -> ObjectResponse:
        from botocore.exceptions import ClientError

        try:
            response = await asyncio.to_thread(
                self._s3_client.get_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from e
            raise

        # We only want headers; don't leave the body holding a pooled socket
        body = response.get("Body")
        if body is not None:
            body.close()

        return ObjectResponse(
            key=key,
            metadata=response.get("Metadata"),
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
        )

    async def delete_object(self, key: str) -> None:
        from botocore.exceptions import ClientError

        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise
            logger.debug("Delete of missing object ignored", extra={"key": key})

    async def presign_get(self, key: str, expires_in: int) -> str:
        return self._s3_client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.bucket_name,
                "Key": key,
            },
            ExpiresIn=expires_in,
        )


# ---------------------------------------------------------------------------
# Mock Store for Local Development
# ---------------------------------------------------------------------------

@dataclass
class _MockObject:
    body: bytes
    content_type: str
    metadata: dict[str, str]
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MockObjectStore:
    """
    In-memory object store for local development and tests.

    Behaves like S3 where the gateway can tell the difference: user-metadata
    keys come back lowercased, puts overwrite, deletes of missing keys
    succeed. "Signed" URLs are mock URIs carrying the expiry.
    """

    def __init__(self, bucket_name: str = "mock-bucket") -> None:
        self.bucket_name = bucket_name
        self._objects: dict[str, _MockObject] = {}
        logger.info("Initialized mock object store (in-memory)")

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        self._objects[key] = _MockObject(
            body=bytes(body),
            content_type=content_type,
            metadata={name.lower(): value for name, value in metadata.items()},
        )
        logger.debug(
            "Stored object in mock store",
            extra={"key": key, "size_bytes": len(body)},
        )

    async def get_object(self, key: str) -> ObjectResponse:
        stored = self._objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(key)

        return ObjectResponse(
            key=key,
            metadata=dict(stored.metadata),
            content_type=stored.content_type,
            content_length=len(stored.body),
        )

    async def delete_object(self, key: str) -> None:
        removed = self._objects.pop(key, None)
        logger.debug(
            "Deleted object from mock store",
            extra={"key": key, "existed": removed is not None},
        )

    async def presign_get(self, key: str, expires_in: int) -> str:
        return f"mock://{self.bucket_name}/{quote(key)}?X-Amz-Expires={expires_in}"

    def read(self, key: str) -> bytes:
        """Return stored bytes, the way a signed URL fetch would."""
        stored = self._objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(key)
        return stored.body

    def __contains__(self, key: str) -> bool:
        return key in self._objects


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create the object store based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store

    Returns:
        ObjectStore implementation (R2 or Mock)

    Raises:
        ConfigError: If config is missing or incomplete outside mock mode
    """
    if mock_mode:
        bucket = config.bucket_name if config and config.bucket_name else "mock-bucket"
        return MockObjectStore(bucket_name=bucket)

    if config is None:
        raise ConfigError("config is required when not in mock mode")

    return R2ObjectStore(config)
