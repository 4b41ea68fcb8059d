"""Repository configuration API routes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from src.modules.auth.models import User
from src.modules.collector.repository_sync import RepositorySyncService
from src.modules.repositories.exceptions import RepositoryConfigNotFoundError
from src.modules.repositories.schemas import (
    RepositoryConfigResponse,
    RepositoryConfigUpdate,
    RepositorySyncResponse,
)
from src.modules.repositories.service import RepositoryConfigService
from src.web.dependencies import require_admin, require_auth

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/repositories", tags=["repositories"])

# Dependency placeholders - configured during app startup
_repository_service: RepositoryConfigService | None = None
_repository_sync: RepositorySyncService | None = None


def get_repository_service() -> RepositoryConfigService:
    """Get the repository configuration service instance."""
    if _repository_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Repository service not configured",
        )
    return _repository_service


def get_repository_sync_service() -> RepositorySyncService:
    if _repository_sync is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="GitHub integration not configured",
        )
    return _repository_sync


def set_repository_services(
    service: RepositoryConfigService, sync: RepositorySyncService | None = None
) -> None:
    """Set the repository services during app startup."""
    global _repository_service, _repository_sync
    _repository_service = service
    _repository_sync = sync


@router.get("", response_model=list[RepositoryConfigResponse])
async def list_repositories(
    user: Annotated[User, Depends(require_auth)],
    service: Annotated[RepositoryConfigService, Depends(get_repository_service)],
) -> list[RepositoryConfigResponse]:
    """List every tracked repository."""
    configs = await service.list_repositories()
    return [RepositoryConfigResponse.from_config(c) for c in configs]


@router.post("/sync", response_model=RepositorySyncResponse)
async def sync_repositories(
    user: Annotated[User, Depends(require_admin)],
    sync: Annotated[RepositorySyncService, Depends(get_repository_sync_service)],
) -> RepositorySyncResponse:
    """Import GitHub repositories that are not tracked yet."""
    logger.info("repository_sync_triggered", user_id=user.id)
    try:
        result = await sync.sync()
    except Exception as e:
        logger.exception("repository_sync_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Repository synchronization failed",
        ) from e
    return RepositorySyncResponse.from_result(result)


@router.put("/{repository_id}", response_model=RepositoryConfigResponse)
async def update_repository(
    repository_id: int,
    data: RepositoryConfigUpdate,
    user: Annotated[User, Depends(require_admin)],
    service: Annotated[RepositoryConfigService, Depends(get_repository_service)],
) -> RepositoryConfigResponse:
    """Set the Datadog service and deployment workflow of a repository."""
    try:
        config = await service.update_repository(
            repository_id,
            datadog_service_name=data.datadog_service_name,
            deployment_workflow_file_name=data.deployment_workflow_file_name,
        )
    except RepositoryConfigNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return RepositoryConfigResponse.from_config(config)
