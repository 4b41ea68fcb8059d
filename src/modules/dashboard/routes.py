"""Role dashboard API routes."""

from datetime import date
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.modules.auth.models import Role, User
from src.modules.dashboard.exceptions import MembersOutsideTeamsError, NoTeamAssignedError
from src.modules.dashboard.models import DashboardFilters
from src.modules.dashboard.schemas import (
    DeveloperMetricsResponse,
    EngineeringManagerMetricsResponse,
    TechLeadMetricsResponse,
)
from src.modules.dashboard.service import DashboardService
from src.modules.teams.exceptions import TeamNotFoundError
from src.web.dependencies import require_auth, require_roles

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])

require_tech_lead = require_roles(Role.TECH_LEAD, Role.ADMIN)
require_engineering_manager = require_roles(Role.ENGINEERING_MANAGER, Role.ADMIN)

# Dependency placeholder - configured during app startup
_dashboard_service: DashboardService | None = None


def get_dashboard_service() -> DashboardService:
    """Get the dashboard service instance."""
    if _dashboard_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard service not configured",
        )
    return _dashboard_service


def set_dashboard_service(service: DashboardService) -> None:
    """Set the dashboard service instance during app startup."""
    global _dashboard_service
    _dashboard_service = service


def get_filters(
    start_date: Annotated[
        date | None, Query(description="First deployment day (inclusive)")
    ] = None,
    end_date: Annotated[
        date | None, Query(description="Last deployment day (inclusive)")
    ] = None,
    repository_ids: Annotated[list[int] | None, Query()] = None,
) -> DashboardFilters:
    """Build dashboard filters from the query string."""
    return DashboardFilters(
        start_date=start_date, end_date=end_date, repository_ids=repository_ids
    )


Filters = Annotated[DashboardFilters, Depends(get_filters)]
Service = Annotated[DashboardService, Depends(get_dashboard_service)]


@router.get("/developer/metrics", response_model=DeveloperMetricsResponse)
async def developer_metrics(
    user: Annotated[User, Depends(require_auth)],
    filters: Filters,
    service: Service,
) -> DeveloperMetricsResponse:
    """Metrics of the commits authored by the current user."""
    metrics = await service.developer_metrics(user, filters)
    return DeveloperMetricsResponse.model_validate(metrics)


@router.get("/tech-lead/metrics", response_model=TechLeadMetricsResponse)
async def tech_lead_metrics(
    user: Annotated[User, Depends(require_tech_lead)],
    filters: Filters,
    service: Service,
    member_ids: Annotated[list[int] | None, Query()] = None,
) -> TechLeadMetricsResponse:
    """Metrics of the current tech lead's team."""
    try:
        metrics = await service.tech_lead_metrics(user, filters, member_ids)
    except (NoTeamAssignedError, TeamNotFoundError) as e:
        logger.warning("tech_lead_metrics_rejected", user_id=user.id, error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return TechLeadMetricsResponse.model_validate(metrics)


@router.get(
    "/engineering-manager/metrics", response_model=EngineeringManagerMetricsResponse
)
async def engineering_manager_metrics(
    user: Annotated[User, Depends(require_engineering_manager)],
    filters: Filters,
    service: Service,
    team_ids: Annotated[list[int] | None, Query()] = None,
    member_ids: Annotated[list[int] | None, Query()] = None,
) -> EngineeringManagerMetricsResponse:
    """Metrics across the selected teams, with a breakdown per team."""
    try:
        metrics = await service.engineering_manager_metrics(
            user, filters, team_ids, member_ids
        )
    except MembersOutsideTeamsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return EngineeringManagerMetricsResponse.model_validate(metrics)
