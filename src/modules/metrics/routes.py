"""DORA metrics API routes."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.modules.auth.models import User
from src.modules.collector.models import PRODUCTION_ENVIRONMENT
from src.modules.metrics.exceptions import InvalidDateRangeError
from src.modules.metrics.periods import PeriodType
from src.modules.metrics.schemas import (
    ChangeFailureRateResponse,
    DeploymentFrequencyResponse,
    MeanTimeToRecoveryResponse,
)
from src.modules.metrics.service import MetricsService
from src.web.dependencies import require_auth

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

# Dependency placeholder - configured during app startup
_metrics_service: MetricsService | None = None


def get_metrics_service() -> MetricsService:
    """Get the metrics service instance."""
    if _metrics_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metrics service not configured",
        )
    return _metrics_service


def set_metrics_service(service: MetricsService) -> None:
    """Set the metrics service instance during app startup."""
    global _metrics_service
    _metrics_service = service


StartDate = Annotated[date, Query(description="First day of the range (inclusive)")]
EndDate = Annotated[date, Query(description="Last day of the range (inclusive)")]
Period = Annotated[PeriodType, Query()]


@router.get("/deployment-frequency", response_model=list[DeploymentFrequencyResponse])
async def deployment_frequency(
    start_date: StartDate,
    end_date: EndDate,
    user: Annotated[User, Depends(require_auth)],
    service: Annotated[MetricsService, Depends(get_metrics_service)],
    period: Period = PeriodType.MONTHLY,
    environment: str = PRODUCTION_ENVIRONMENT,
) -> list[DeploymentFrequencyResponse]:
    """Count deployments to an environment per period."""
    try:
        metrics = await service.deployment_frequency(
            environment, start_date, end_date, period
        )
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [DeploymentFrequencyResponse.from_metric(m) for m in metrics]


@router.get("/change-failure-rate", response_model=list[ChangeFailureRateResponse])
async def change_failure_rate(
    service_name: str,
    start_date: StartDate,
    end_date: EndDate,
    user: Annotated[User, Depends(require_auth)],
    service: Annotated[MetricsService, Depends(get_metrics_service)],
    period: Period = PeriodType.MONTHLY,
    environment: str = PRODUCTION_ENVIRONMENT,
) -> list[ChangeFailureRateResponse]:
    """Incidents of a Datadog service per deployment, per period."""
    try:
        metrics = await service.change_failure_rate(
            service_name, environment, start_date, end_date, period
        )
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [ChangeFailureRateResponse.from_metric(m) for m in metrics]


@router.get("/mttr", response_model=list[MeanTimeToRecoveryResponse])
async def mean_time_to_recovery(
    service_name: str,
    start_date: StartDate,
    end_date: EndDate,
    user: Annotated[User, Depends(require_auth)],
    service: Annotated[MetricsService, Depends(get_metrics_service)],
    period: Period = PeriodType.MONTHLY,
) -> list[MeanTimeToRecoveryResponse]:
    """Mean time to recovery of a Datadog service, per period."""
    try:
        metrics = await service.mean_time_to_recovery(
            service_name, start_date, end_date, period
        )
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [MeanTimeToRecoveryResponse.from_metric(m) for m in metrics]
