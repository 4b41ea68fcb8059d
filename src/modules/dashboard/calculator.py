"""Metrics shared by every dashboard, computed over a set of commits."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta

import structlog

from src.infrastructure.observability import traced
from src.modules.collector.models import Commit, Incident
from src.modules.collector.repository import (
    CommitRepository,
    IncidentRepository,
    PullRequestRepository,
)
from src.modules.dashboard.models import (
    CommitSetMetrics,
    CommitStats,
    DailyMetric,
    DashboardFilters,
    DoraMetrics,
    PullRequestStats,
    RepositoryStats,
)
from src.modules.metrics.models import LeadTimeRecord
from src.modules.metrics.repository import ChangeLeadTimeRepository
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()

INCIDENT_CORRELATION_WINDOW = timedelta(hours=48)
SECONDS_PER_HOUR = 3600.0


def _hours(seconds: int) -> float:
    return seconds / SECONDS_PER_HOUR


def _average(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


class DashboardCalculator:
    """Builds repository, commit, pull request and DORA figures for commits.

    Merge commits never count: they are kept in the commit graph but do not
    represent an author's work.
    """

    def __init__(
        self,
        commits: CommitRepository,
        pull_requests: PullRequestRepository,
        repositories: RepositoryConfigRepository,
        lead_times: ChangeLeadTimeRepository,
        incidents: IncidentRepository,
    ) -> None:
        self._commits = commits
        self._pull_requests = pull_requests
        self._repositories = repositories
        self._lead_times = lead_times
        self._incidents = incidents

    async def commits_by_authors(self, usernames: Iterable[str]) -> list[Commit]:
        """Non-merge commits authored by any of the usernames, ignoring case."""
        commits = await self._commits.list_by_authors(usernames)
        return [c for c in commits if not c.is_merge]

    async def lead_time_records(
        self, commits: list[Commit], filters: DashboardFilters
    ) -> list[LeadTimeRecord]:
        """Lead times of the commits whose deployment passes the filters."""
        if not commits:
            return []
        records = await self._lead_times.list_for_commits(c.sha for c in commits)
        return [
            r
            for r in records
            if filters.includes_date(r.deployment_created_at.date())
            and filters.includes_repository(r.repository_id)
        ]

    @traced("dashboard.calculate")
    async def calculate(
        self, commits: list[Commit], filters: DashboardFilters
    ) -> CommitSetMetrics:
        """Compute every dashboard figure for a set of commits.

        With filters, only commits shipped by a matching deployment are kept.
        """
        records = await self.lead_time_records(commits, filters)
        commits = self.apply_filters(commits, records, filters)
        if not commits:
            return CommitSetMetrics()

        repositories = await self.repository_stats(commits)
        return CommitSetMetrics(
            repositories=repositories,
            commit_stats=self.commit_stats(commits, len(repositories)),
            pull_request_stats=await self.pull_request_stats(commits),
            dora_metrics=await self.dora_metrics(records, filters),
        )

    @staticmethod
    def apply_filters(
        commits: list[Commit], records: list[LeadTimeRecord], filters: DashboardFilters
    ) -> list[Commit]:
        if filters.is_empty:
            return commits
        shipped = {r.commit_sha for r in records}
        return [c for c in commits if c.sha in shipped]

    async def repository_stats(self, commits: list[Commit]) -> list[RepositoryStats]:
        """Commit counts per repository, most commits first."""
        counts: dict[int, int] = defaultdict(int)
        for commit in commits:
            counts[commit.repository_id] += 1

        configs = {c.id: c for c in await self._repositories.get_many(counts)}
        stats = [
            RepositoryStats(
                repository_id=repository_id,
                repository_name=configs[repository_id].repo_name,
                repository_url=configs[repository_id].repository_url,
                commit_count=count,
            )
            for repository_id, count in sorted(counts.items())
            if repository_id in configs
        ]
        stats.sort(key=lambda s: s.commit_count, reverse=True)
        return stats

    @staticmethod
    def commit_stats(commits: list[Commit], repository_count: int) -> CommitStats:
        dates = [c.date for c in commits if c.date is not None]
        return CommitStats(
            total_commits=len(commits),
            repository_count=repository_count,
            last_commit_date=max(dates) if dates else None,
            first_commit_date=min(dates) if dates else None,
        )

    async def pull_request_stats(self, commits: list[Commit]) -> PullRequestStats:
        """Count pull requests containing any of the commits.

        A pull request contains its first commit and every descendant of it.
        That holds exactly when the first commit is one of the given commits
        or an ancestor of one, so a single walk up the parent links answers
        it for every pull request at once.
        """
        if not commits:
            return PullRequestStats()

        reachable = await self._ancestors_or_self({c.sha for c in commits})
        relevant = [
            pr
            for pr in await self._pull_requests.list_with_first_commit()
            if pr.first_commit_sha in reachable
        ]
        return PullRequestStats(
            total_pull_requests=len(relevant),
            merged_pull_requests=sum(1 for pr in relevant if pr.is_merged),
            open_pull_requests=sum(1 for pr in relevant if pr.is_open),
        )

    async def _ancestors_or_self(self, shas: set[str]) -> set[str]:
        seen = set(shas)
        frontier = list(shas)
        while frontier:
            parents = await self._commits.get_parents(frontier)
            frontier = []
            for parent_shas in parents.values():
                for parent in parent_shas:
                    if parent not in seen:
                        seen.add(parent)
                        frontier.append(parent)
        return seen

    async def dora_metrics(
        self, records: list[LeadTimeRecord], filters: DashboardFilters
    ) -> DoraMetrics:
        """Lead time, change failure and recovery figures for shipped commits.

        A deployment failed when an incident started within 48 hours after
        it, on the same Datadog service, or on the same repository when
        either side has no service name.
        """
        if not records:
            return DoraMetrics()

        lead_hours = [_hours(r.lead_time_seconds) for r in records]
        deployments: dict[int, LeadTimeRecord] = {}
        for record in records:
            deployments.setdefault(record.deployment_id, record)

        failed = await self._failed_deployments(list(deployments.values()))
        resolved = await self._resolved_incidents(
            filters.repository_ids or {r.repository_id for r in records}, filters
        )
        mttr_hours = [_hours(i.duration_seconds or 0) for i in resolved]

        return DoraMetrics(
            average_lead_time_hours=_average(lead_hours),
            min_lead_time_hours=min(lead_hours),
            max_lead_time_hours=max(lead_hours),
            deployment_count=len(deployments),
            deployment_commit_count=len(records),
            change_failure_rate=len(failed) * 100.0 / len(deployments),
            failed_deployment_count=len(failed),
            average_mttr_hours=_average(mttr_hours),
            min_mttr_hours=min(mttr_hours) if mttr_hours else None,
            max_mttr_hours=max(mttr_hours) if mttr_hours else None,
            resolved_incident_count=len(resolved),
            daily_metrics=self._daily_series(records, failed, resolved),
        )

    async def _failed_deployments(self, deployments: list[LeadTimeRecord]) -> set[int]:
        start = min(d.deployment_created_at for d in deployments)
        end = max(d.deployment_created_at for d in deployments) + INCIDENT_CORRELATION_WINDOW
        incidents = await self._incidents.list_started_between(start, end)

        failed: set[int] = set()
        for deployment in deployments:
            window_start = deployment.deployment_created_at
            window_end = window_start + INCIDENT_CORRELATION_WINDOW
            for incident in incidents:
                if not window_start <= incident.start_time < window_end:
                    continue
                if deployment.service_name and incident.service_name:
                    related = deployment.service_name == incident.service_name
                else:
                    related = deployment.repository_id == incident.repository_id
                if related:
                    failed.add(deployment.deployment_id)
                    break
        return failed

    async def _resolved_incidents(
        self, repository_ids: Iterable[int], filters: DashboardFilters
    ) -> list[Incident]:
        incidents = await self._incidents.list_resolved(repository_ids)
        return [i for i in incidents if filters.includes_date(i.start_time.date())]

    @staticmethod
    def _daily_series(
        records: list[LeadTimeRecord], failed: set[int], resolved: list[Incident]
    ) -> list[DailyMetric]:
        records_by_day: dict[date, list[LeadTimeRecord]] = defaultdict(list)
        for record in records:
            records_by_day[record.deployment_created_at.date()].append(record)
        incidents_by_day: dict[date, list[Incident]] = defaultdict(list)
        for incident in resolved:
            incidents_by_day[incident.start_time.date()].append(incident)

        series = []
        for day in sorted(records_by_day.keys() | incidents_by_day.keys()):
            day_records = records_by_day.get(day, [])
            day_incidents = incidents_by_day.get(day, [])
            deployment_ids = {r.deployment_id for r in day_records}
            series.append(
                DailyMetric(
                    date=day,
                    average_lead_time_hours=_average(
                        [_hours(r.lead_time_seconds) for r in day_records]
                    ),
                    deployment_count=len(deployment_ids),
                    commit_count=len(day_records),
                    failed_deployment_count=len(deployment_ids & failed),
                    average_mttr_hours=_average(
                        [_hours(i.duration_seconds or 0) for i in day_incidents]
                    ),
                    resolved_incident_count=len(day_incidents),
                )
            )
        return series
