"""Pydantic schemas for the dashboard API.

Responses are read straight from the dashboard dataclasses.
"""

from datetime import date, datetime

from pydantic import BaseModel


class _FromAttributes(BaseModel):
    class Config:
        """Pydantic configuration."""

        from_attributes = True


class RepositoryStatsResponse(_FromAttributes):
    repository_id: int
    repository_name: str | None
    repository_url: str
    commit_count: int


class CommitStatsResponse(_FromAttributes):
    total_commits: int
    repository_count: int
    last_commit_date: datetime | None
    first_commit_date: datetime | None


class PullRequestStatsResponse(_FromAttributes):
    total_pull_requests: int
    merged_pull_requests: int
    open_pull_requests: int


class DailyMetricResponse(_FromAttributes):
    date: date
    average_lead_time_hours: float | None
    deployment_count: int
    commit_count: int
    failed_deployment_count: int
    average_mttr_hours: float | None
    resolved_incident_count: int


class DoraMetricsResponse(_FromAttributes):
    """DORA figures of a commit set.

    ``change_failure_rate`` is a percentage. Lead time and MTTR are in hours.
    """

    average_lead_time_hours: float | None
    min_lead_time_hours: float | None
    max_lead_time_hours: float | None
    deployment_count: int
    deployment_commit_count: int
    change_failure_rate: float | None
    failed_deployment_count: int
    average_mttr_hours: float | None
    min_mttr_hours: float | None
    max_mttr_hours: float | None
    resolved_incident_count: int
    daily_metrics: list[DailyMetricResponse]


class CommitSetMetricsResponse(_FromAttributes):
    repositories: list[RepositoryStatsResponse]
    commit_stats: CommitStatsResponse
    pull_request_stats: PullRequestStatsResponse
    dora_metrics: DoraMetricsResponse


class DeveloperMetricsResponse(_FromAttributes):
    developer_username: str
    metrics: CommitSetMetricsResponse


class TeamMemberStatsResponse(_FromAttributes):
    user_id: int
    github_username: str
    name: str | None
    email: str | None
    total_commits: int
    total_pull_requests: int
    merged_pull_requests: int
    average_lead_time_hours: float | None
    deployment_count: int


class TechLeadMetricsResponse(_FromAttributes):
    tech_lead_username: str
    team_id: int
    team_name: str
    team_members: list[TeamMemberStatsResponse]
    metrics: CommitSetMetricsResponse


class TeamMetricsResponse(_FromAttributes):
    team_id: int
    team_name: str
    member_count: int
    total_commits: int
    total_pull_requests: int
    repository_count: int
    metrics: CommitSetMetricsResponse


class EngineeringManagerMetricsResponse(_FromAttributes):
    engineering_manager_username: str
    total_teams: int
    total_developers: int
    teams: list[TeamMetricsResponse]
    metrics: CommitSetMetricsResponse
