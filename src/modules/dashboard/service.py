"""Role dashboards built from the shared commit-set calculation."""

import structlog

from src.modules.auth.models import User
from src.modules.auth.repository import UserRepository
from src.modules.collector.models import Commit
from src.modules.dashboard.calculator import SECONDS_PER_HOUR, DashboardCalculator
from src.modules.dashboard.exceptions import MembersOutsideTeamsError, NoTeamAssignedError
from src.modules.dashboard.models import (
    CommitSetMetrics,
    DashboardFilters,
    DeveloperMetrics,
    EngineeringManagerMetrics,
    TeamMemberStats,
    TeamMetrics,
    TechLeadMetrics,
)
from src.modules.teams.exceptions import TeamNotFoundError
from src.modules.teams.repository import TeamRepository

logger = structlog.get_logger()


def _authored_by(commits: list[Commit], members: list[User]) -> list[Commit]:
    usernames = {m.github_username.lower() for m in members}
    return [c for c in commits if c.author.lower() in usernames]


class DashboardService:
    """Service for the developer, tech lead and engineering manager dashboards."""

    def __init__(
        self,
        calculator: DashboardCalculator,
        users: UserRepository,
        teams: TeamRepository,
    ) -> None:
        self._calculator = calculator
        self._users = users
        self._teams = teams

    async def developer_metrics(
        self, user: User, filters: DashboardFilters
    ) -> DeveloperMetrics:
        """Metrics of the commits authored by one developer."""
        logger.info(
            "developer_metrics_requested",
            username=user.github_username,
            start_date=filters.start_date,
            end_date=filters.end_date,
            repository_ids=filters.repository_ids,
        )
        commits = await self._calculator.commits_by_authors([user.github_username])
        metrics = await self._calculator.calculate(commits, filters)
        return DeveloperMetrics(developer_username=user.github_username, metrics=metrics)

    async def tech_lead_metrics(
        self,
        user: User,
        filters: DashboardFilters,
        member_ids: list[int] | None = None,
    ) -> TechLeadMetrics:
        """Metrics of the tech lead's team, optionally narrowed to some members.

        Raises:
            NoTeamAssignedError: If the user is not assigned to a team.
            TeamNotFoundError: If the assigned team no longer exists.
        """
        if user.team_id is None:
            raise NoTeamAssignedError(user.github_username)
        team = await self._teams.get_by_id(user.team_id)
        if team is None:
            raise TeamNotFoundError(user.team_id)

        members = await self._users.list_by_team(team.id)
        if member_ids:
            selected = set(member_ids)
            members = [m for m in members if m.id in selected]

        result = TechLeadMetrics(
            tech_lead_username=user.github_username,
            team_id=team.id,
            team_name=team.name,
            team_members=[],
            metrics=CommitSetMetrics(),
        )
        if not members:
            logger.warning("tech_lead_team_without_members", team_id=team.id)
            return result

        commits = await self._calculator.commits_by_authors(
            m.github_username for m in members
        )
        result.metrics = await self._calculator.calculate(commits, filters)
        if not filters.is_empty:
            commits = await self._shipped(commits, filters)

        stats = [await self._member_stats(m, commits, filters) for m in members]
        stats.sort(key=lambda s: s.total_commits, reverse=True)
        result.team_members = stats
        return result

    async def engineering_manager_metrics(
        self,
        user: User,
        filters: DashboardFilters,
        team_ids: list[int] | None = None,
        member_ids: list[int] | None = None,
    ) -> EngineeringManagerMetrics:
        """Metrics across teams, with a breakdown per team.

        Raises:
            MembersOutsideTeamsError: If a requested member is in none of the
                selected teams.
        """
        if team_ids:
            teams = await self._teams.get_many(team_ids)
        else:
            teams = await self._teams.list_all()
        result = EngineeringManagerMetrics(
            engineering_manager_username=user.github_username,
            total_teams=0,
            total_developers=0,
            teams=[],
            metrics=CommitSetMetrics(),
        )
        if not teams:
            logger.warning("engineering_manager_no_teams", team_ids=team_ids)
            return result

        members: list[User] = []
        for team in teams:
            members.extend(await self._users.list_by_team(team.id))

        if member_ids:
            known = {m.id for m in members}
            outside = [i for i in member_ids if i not in known]
            if outside:
                raise MembersOutsideTeamsError(outside, [t.id for t in teams])
            selected = set(member_ids)
            members = [m for m in members if m.id in selected]

        result.total_teams = len(teams)
        if not members:
            return result
        result.total_developers = len(members)

        commits = await self._calculator.commits_by_authors(
            m.github_username for m in members
        )
        result.metrics = await self._calculator.calculate(commits, filters)
        if not filters.is_empty:
            commits = await self._shipped(commits, filters)

        breakdown = []
        for team in teams:
            team_members = [m for m in members if m.team_id == team.id]
            team_commits = _authored_by(commits, team_members)
            metrics = (
                await self._calculator.calculate(team_commits, filters)
                if team_commits
                else CommitSetMetrics()
            )
            breakdown.append(
                TeamMetrics(
                    team_id=team.id,
                    team_name=team.name,
                    member_count=len(team_members),
                    total_commits=len(team_commits),
                    total_pull_requests=metrics.pull_request_stats.total_pull_requests,
                    repository_count=len(metrics.repositories),
                    metrics=metrics,
                )
            )
        breakdown.sort(key=lambda t: t.total_commits, reverse=True)
        result.teams = breakdown

        logger.info(
            "engineering_manager_metrics_calculated",
            username=user.github_username,
            teams=result.total_teams,
            developers=result.total_developers,
            commits=result.metrics.commit_stats.total_commits,
        )
        return result

    async def _shipped(self, commits: list[Commit], filters: DashboardFilters) -> list[Commit]:
        records = await self._calculator.lead_time_records(commits, filters)
        return self._calculator.apply_filters(commits, records, filters)

    async def _member_stats(
        self, member: User, commits: list[Commit], filters: DashboardFilters
    ) -> TeamMemberStats:
        member_commits = _authored_by(commits, [member])
        pull_requests = await self._calculator.pull_request_stats(member_commits)
        records = await self._calculator.lead_time_records(member_commits, filters)
        average = (
            sum(r.lead_time_seconds for r in records) / len(records) / SECONDS_PER_HOUR
            if records
            else None
        )
        return TeamMemberStats(
            user_id=member.id,
            github_username=member.github_username,
            name=member.name,
            email=member.email,
            total_commits=len(member_commits),
            total_pull_requests=pull_requests.total_pull_requests,
            merged_pull_requests=pull_requests.merged_pull_requests,
            average_lead_time_hours=average,
            deployment_count=len({r.deployment_id for r in records}),
        )
