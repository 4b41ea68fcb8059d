"""Pydantic schemas for the metrics API."""

from datetime import date

from pydantic import BaseModel

from src.modules.metrics.models import (
    ChangeFailureRate,
    DeploymentFrequency,
    MeanTimeToRecovery,
)


class DeploymentFrequencyResponse(BaseModel):
    period_start: date
    period_end: date
    count: int

    @classmethod
    def from_metric(cls, metric: DeploymentFrequency) -> "DeploymentFrequencyResponse":
        return cls(
            period_start=metric.period_start,
            period_end=metric.period_end,
            count=metric.count,
        )


class ChangeFailureRateResponse(BaseModel):
    """Change failure rate of one period.

    ``rate`` is a fraction (0.15), ``rate_percentage`` the same value in
    percent (15.0).
    """

    period_start: date
    period_end: date
    deployment_count: int
    incident_count: int
    rate: float
    rate_percentage: float
    dora_level: str

    @classmethod
    def from_metric(cls, metric: ChangeFailureRate) -> "ChangeFailureRateResponse":
        return cls(
            period_start=metric.period_start,
            period_end=metric.period_end,
            deployment_count=metric.deployment_count,
            incident_count=metric.incident_count,
            rate=metric.rate,
            rate_percentage=metric.rate_percentage,
            dora_level=metric.dora_level,
        )


class MeanTimeToRecoveryResponse(BaseModel):
    period_start: date
    period_end: date
    incident_count: int
    average_duration_seconds: int
    average_duration_minutes: float
    average_duration_hours: float

    @classmethod
    def from_metric(cls, metric: MeanTimeToRecovery) -> "MeanTimeToRecoveryResponse":
        return cls(
            period_start=metric.period_start,
            period_end=metric.period_end,
            incident_count=metric.incident_count,
            average_duration_seconds=metric.average_duration_seconds,
            average_duration_minutes=metric.average_duration_minutes,
            average_duration_hours=metric.average_duration_hours,
        )
