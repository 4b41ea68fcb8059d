"""Dashboard result models."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass
class DashboardFilters:
    """Optional filters applied through the deployments that shipped commits.

    Dates are compared with the deployment's UTC calendar date.
    """

    start_date: date | None = None
    end_date: date | None = None
    repository_ids: list[int] | None = None

    @property
    def is_empty(self) -> bool:
        return self.start_date is None and self.end_date is None and not self.repository_ids

    def includes_date(self, day: date) -> bool:
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True

    def includes_repository(self, repository_id: int) -> bool:
        return not self.repository_ids or repository_id in self.repository_ids


@dataclass
class RepositoryStats:
    repository_id: int
    repository_name: str | None
    repository_url: str
    commit_count: int


@dataclass
class CommitStats:
    total_commits: int = 0
    repository_count: int = 0
    last_commit_date: datetime | None = None
    first_commit_date: datetime | None = None


@dataclass
class PullRequestStats:
    total_pull_requests: int = 0
    merged_pull_requests: int = 0
    open_pull_requests: int = 0


@dataclass
class DailyMetric:
    """DORA figures for one UTC day.

    Lead time figures are grouped by deployment date, incident figures by
    incident start date.
    """

    date: date
    average_lead_time_hours: float | None
    deployment_count: int
    commit_count: int
    failed_deployment_count: int
    average_mttr_hours: float | None
    resolved_incident_count: int


@dataclass
class DoraMetrics:
    average_lead_time_hours: float | None = None
    min_lead_time_hours: float | None = None
    max_lead_time_hours: float | None = None
    deployment_count: int = 0
    deployment_commit_count: int = 0
    change_failure_rate: float | None = None
    failed_deployment_count: int = 0
    average_mttr_hours: float | None = None
    min_mttr_hours: float | None = None
    max_mttr_hours: float | None = None
    resolved_incident_count: int = 0
    daily_metrics: list[DailyMetric] = field(default_factory=list)


@dataclass
class CommitSetMetrics:
    """Everything computed over one set of commits."""

    repositories: list[RepositoryStats] = field(default_factory=list)
    commit_stats: CommitStats = field(default_factory=CommitStats)
    pull_request_stats: PullRequestStats = field(default_factory=PullRequestStats)
    dora_metrics: DoraMetrics = field(default_factory=DoraMetrics)


@dataclass
class DeveloperMetrics:
    developer_username: str
    metrics: CommitSetMetrics


@dataclass
class TeamMemberStats:
    user_id: int
    github_username: str
    name: str | None
    email: str | None
    total_commits: int
    total_pull_requests: int
    merged_pull_requests: int
    average_lead_time_hours: float | None
    deployment_count: int


@dataclass
class TechLeadMetrics:
    tech_lead_username: str
    team_id: int
    team_name: str
    team_members: list[TeamMemberStats]
    metrics: CommitSetMetrics


@dataclass
class TeamMetrics:
    team_id: int
    team_name: str
    member_count: int
    total_commits: int
    total_pull_requests: int
    repository_count: int
    metrics: CommitSetMetrics


@dataclass
class EngineeringManagerMetrics:
    engineering_manager_username: str
    total_teams: int
    total_developers: int
    teams: list[TeamMetrics]
    metrics: CommitSetMetrics
