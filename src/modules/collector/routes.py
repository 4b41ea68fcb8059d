"""Admin sync triggers and Datadog catalog routes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.api.rate_limit import get_rate_limit_string, limiter
from src.config import Settings, get_settings
from src.infrastructure.datadog import DatadogClient
from src.modules.auth.models import User
from src.modules.collector.deployment_sync import DeploymentSyncService
from src.modules.collector.schemas import DatadogServiceResponse, UserSyncResponse
from src.modules.collector.user_sync import UserSyncService
from src.web.dependencies import require_admin

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])
datadog_router = APIRouter(prefix="/api/v1/datadog", tags=["datadog"])

# Dependency placeholders - configured during app startup
_deployment_sync: DeploymentSyncService | None = None
_user_sync: UserSyncService | None = None
_datadog_client: DatadogClient | None = None


def get_deployment_sync_service() -> DeploymentSyncService:
    if _deployment_sync is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deployment sync not configured",
        )
    return _deployment_sync


def get_user_sync_service() -> UserSyncService:
    if _user_sync is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User sync not configured",
        )
    return _user_sync


def get_datadog_client() -> DatadogClient:
    if _datadog_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Datadog integration not configured",
        )
    return _datadog_client


def set_collector_services(
    *,
    deployment_sync: DeploymentSyncService | None = None,
    user_sync: UserSyncService | None = None,
    datadog_client: DatadogClient | None = None,
) -> None:
    """Set the collector services during app startup."""
    global _deployment_sync, _user_sync, _datadog_client
    _deployment_sync = deployment_sync
    _user_sync = user_sync
    _datadog_client = datadog_client


@router.post("/sync/deployments")
@limiter.limit(get_rate_limit_string)
async def trigger_deployment_sync(
    request: Request,
    user: Annotated[User, Depends(require_admin)],
    service: Annotated[DeploymentSyncService, Depends(get_deployment_sync_service)],
) -> JSONResponse:
    """Run a deployment sync cycle now."""
    logger.info("manual_deployment_sync_triggered", user_id=user.id)
    try:
        await service.sync_all()
    except Exception as e:
        logger.exception("manual_deployment_sync_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Deployment synchronization failed: {e}"},
        )
    return JSONResponse(
        content={"message": "Deployment synchronization triggered successfully."}
    )


@router.post("/sync/users", response_model=UserSyncResponse)
@limiter.limit(get_rate_limit_string)
async def trigger_user_sync(
    request: Request,
    user: Annotated[User, Depends(require_admin)],
    service: Annotated[UserSyncService, Depends(get_user_sync_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserSyncResponse:
    """Mirror the configured GitHub organization's members into users."""
    organization = settings.github_organization_name
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No GitHub organization configured",
        )

    logger.info("manual_user_sync_triggered", user_id=user.id, organization=organization)
    try:
        result = await service.sync(organization)
    except Exception as e:
        logger.exception("manual_user_sync_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"User synchronization failed: {e}",
        ) from e
    return UserSyncResponse.from_result(result)


@datadog_router.get("/services", response_model=list[DatadogServiceResponse])
async def list_datadog_services(
    user: Annotated[User, Depends(require_admin)],
    client: Annotated[DatadogClient, Depends(get_datadog_client)],
) -> list[DatadogServiceResponse]:
    """List Datadog service names, sorted ignoring case."""
    try:
        names = await client.get_services()
    except Exception as e:
        logger.exception("datadog_services_fetch_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch services from Datadog",
        ) from e

    logger.info("datadog_services_fetched", count=len(names))
    return [
        DatadogServiceResponse(service_name=name)
        for name in sorted(names, key=str.lower)
    ]
