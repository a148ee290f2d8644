"""
Liveness and readiness for the storage gateway.

GET /health answers from the process alone. GET /health/ready also checks
that storage credentials are configured and that the bucket accepts a
write followed by a delete, so it costs two storage requests per call.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ..dependencies import SettingsDep, StorageGatewayDep

logger = logging.getLogger(__name__)

router = APIRouter()

OK = "ok"
ERROR = "error"


class LivenessResponse(BaseModel):
    status: str
    version: str
    details: dict[str, str]


class CheckResult(BaseModel):
    name: str
    status: str
    error: Optional[str] = None


class ReadinessResponse(BaseModel):
    """status is "ready" only when every check is ok."""
    status: str
    version: str
    checks: list[CheckResult]


def _storage_backend(settings) -> str:
    return "mock" if settings.r2_mock_mode else "cloudflare-r2"


def _configuration_check(settings) -> CheckResult:
    missing = settings.validate_required_fields()
    if missing:
        return CheckResult(
            name="configuration",
            status=ERROR,
            error="Missing " + ", ".join(missing),
        )
    return CheckResult(name="configuration", status=OK)


async def _bucket_check(gateway) -> CheckResult:
    if await gateway.check_health():
        return CheckResult(name="storage", status=OK)
    return CheckResult(
        name="storage",
        status=ERROR,
        error="Could not write and delete a health-check object",
    )


@router.get(
    "",
    response_model=LivenessResponse,
    summary="Liveness",
)
async def liveness(settings: SettingsDep) -> LivenessResponse:
    return LivenessResponse(
        status=OK,
        version=__version__,
        details={"storage": _storage_backend(settings)},
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness",
    responses={503: {"model": ReadinessResponse, "description": "Storage not usable"}},
)
async def readiness(
    settings: SettingsDep,
    gateway: StorageGatewayDep,
    response: Response,
) -> ReadinessResponse:
    checks = [_configuration_check(settings), await _bucket_check(gateway)]
    failed = [check for check in checks if check.status != OK]

    if failed:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Storage gateway not ready",
            extra={
                "backend": _storage_backend(settings),
                "failed_checks": {check.name: check.error for check in failed},
            },
        )

    return ReadinessResponse(
        status="not_ready" if failed else "ready",
        version=__version__,
        checks=checks,
    )
