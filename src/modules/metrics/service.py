"""DORA metric calculations over reporting periods."""

from datetime import date

import structlog

from src.modules.collector.models import IncidentState
from src.modules.collector.repository import DeploymentRepository, IncidentRepository
from src.modules.metrics.exceptions import InvalidDateRangeError
from src.modules.metrics.models import (
    ChangeFailureRate,
    DeploymentFrequency,
    MeanTimeToRecovery,
)
from src.modules.metrics.periods import PeriodType, day_bounds, iter_periods

logger = structlog.get_logger()


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidDateRangeError(start, end)


class MetricsService:
    """Deployment frequency, change failure rate and MTTR series.

    Each period covers whole days: from ``period_start`` 00:00:00 to
    ``period_end`` 23:59:59 UTC.
    """

    def __init__(
        self, deployments: DeploymentRepository, incidents: IncidentRepository
    ) -> None:
        self._deployments = deployments
        self._incidents = incidents

    async def deployment_frequency(
        self, environment: str, start: date, end: date, period: PeriodType
    ) -> list[DeploymentFrequency]:
        _check_range(start, end)
        results = []
        for period_start, period_end in iter_periods(start, end, period):
            deployments = await self._deployments.list_between(
                environment, *day_bounds(period_start, period_end)
            )
            results.append(
                DeploymentFrequency(period_start, period_end, len(deployments))
            )
        return results

    async def change_failure_rate(
        self,
        service_name: str,
        environment: str,
        start: date,
        end: date,
        period: PeriodType,
    ) -> list[ChangeFailureRate]:
        """Incidents of a service divided by deployments to an environment.

        A period without deployments has a rate of 0.
        """
        _check_range(start, end)
        results = []
        for period_start, period_end in iter_periods(start, end, period):
            bounds = day_bounds(period_start, period_end)
            deployment_count = len(
                await self._deployments.list_between(environment, *bounds)
            )
            incident_count = len(
                await self._incidents.list_by_service_between(service_name, *bounds)
            )
            rate = incident_count / deployment_count if deployment_count else 0.0
            results.append(
                ChangeFailureRate(
                    period_start=period_start,
                    period_end=period_end,
                    deployment_count=deployment_count,
                    incident_count=incident_count,
                    rate=rate,
                )
            )
        logger.debug(
            "change_failure_rate_calculated", service=service_name, periods=len(results)
        )
        return results

    async def mean_time_to_recovery(
        self, service_name: str, start: date, end: date, period: PeriodType
    ) -> list[MeanTimeToRecovery]:
        """Average duration of the RESOLVED incidents started in each period."""
        _check_range(start, end)
        results = []
        for period_start, period_end in iter_periods(start, end, period):
            resolved = [
                i
                for i in await self._incidents.list_by_service_between(
                    service_name, *day_bounds(period_start, period_end)
                )
                if i.state is IncidentState.RESOLVED
            ]
            average = 0
            if resolved:
                average = sum(i.duration_seconds or 0 for i in resolved) // len(resolved)
            results.append(
                MeanTimeToRecovery(
                    period_start=period_start,
                    period_end=period_end,
                    incident_count=len(resolved),
                    average_duration_seconds=average,
                )
            )
        return results
