"""
Request-scoped providers for the files and health routers.

The storage gateway is built once by the lifespan in main.py and kept on
``app.state``. Routes reach it through StorageGatewayDep so that tests can
start the app around the in-memory store.

Callers authenticate with a shared key in the X-API-Key header. Keys come
from the API_KEYS setting; when it is empty every request is refused.
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..infrastructure.storage.gateway import StorageGateway

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

_api_key_scheme = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def _is_known_key(candidate: str, accepted: list[str]) -> bool:
    return any(secrets.compare_digest(candidate, key) for key in accepted)


async def require_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: Optional[str] = Security(_api_key_scheme),
) -> str:
    """Return the caller's key, or refuse the request with 403."""
    if not api_key:
        logger.warning("Storage request without %s header", API_KEY_HEADER)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing {API_KEY_HEADER} header",
        )

    if not _is_known_key(api_key, settings.api_keys_list):
        logger.warning("Storage request with unknown API key", extra={"key_prefix": api_key[:4]})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unknown API key",
        )

    return api_key


def get_storage_gateway(request: Request) -> StorageGateway:
    """The gateway built at startup; 503 if the lifespan has not run."""
    gateway = getattr(request.app.state, "storage_gateway", None)
    if gateway is None:
        logger.error("Storage gateway requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not initialized",
        )
    return gateway


ApiKey = Annotated[str, Depends(require_api_key)]
StorageGatewayDep = Annotated[StorageGateway, Depends(get_storage_gateway)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
