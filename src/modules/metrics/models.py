"""DORA metric models."""

from dataclasses import dataclass
from datetime import date, datetime

from src.infrastructure.database import from_db

ELITE_MAX_PERCENTAGE = 15.0
HIGH_MAX_PERCENTAGE = 30.0
MEDIUM_MAX_PERCENTAGE = 45.0


@dataclass
class ChangeLeadTime:
    """Time from a commit to the production deployment that shipped it."""

    id: int
    commit_sha: str
    deployment_id: int
    lead_time_seconds: int

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "ChangeLeadTime":
        return cls(
            id=int(row["id"]),
            commit_sha=str(row["commit_sha"]),
            deployment_id=int(row["deployment_id"]),
            lead_time_seconds=int(row["lead_time_seconds"]),
        )


@dataclass
class LeadTimeRecord:
    """A lead time joined with the deployment it belongs to."""

    commit_sha: str
    deployment_id: int
    lead_time_seconds: int
    deployment_created_at: datetime
    repository_id: int
    service_name: str | None

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "LeadTimeRecord":
        return cls(
            commit_sha=str(row["commit_sha"]),
            deployment_id=int(row["deployment_id"]),
            lead_time_seconds=int(row["lead_time_seconds"]),
            deployment_created_at=from_db(row["deployment_created_at"]),
            repository_id=int(row["repository_id"]),
            service_name=str(row["service_name"]) if row["service_name"] else None,
        )


@dataclass
class DeploymentFrequency:
    period_start: date
    period_end: date
    count: int


def dora_level(rate_percentage: float) -> str:
    """Classify a change failure rate percentage against the DORA benchmarks."""
    if rate_percentage <= ELITE_MAX_PERCENTAGE:
        return "Elite"
    if rate_percentage <= HIGH_MAX_PERCENTAGE:
        return "High"
    if rate_percentage <= MEDIUM_MAX_PERCENTAGE:
        return "Medium"
    return "Low"


@dataclass
class ChangeFailureRate:
    """Incidents per production deployment over one period.

    Incidents are not correlated with individual deployments; the rate is
    the ratio of both counts within the period.
    """

    period_start: date
    period_end: date
    deployment_count: int
    incident_count: int
    rate: float

    @property
    def rate_percentage(self) -> float:
        return self.rate * 100.0

    @property
    def dora_level(self) -> str:
        return dora_level(self.rate_percentage)


@dataclass
class MeanTimeToRecovery:
    """Average duration of resolved incidents over one period."""

    period_start: date
    period_end: date
    incident_count: int
    average_duration_seconds: int

    @property
    def average_duration_minutes(self) -> float:
        return self.average_duration_seconds / 60.0

    @property
    def average_duration_hours(self) -> float:
        return self.average_duration_seconds / 3600.0
