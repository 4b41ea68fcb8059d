"""Team management service."""

import structlog

from src.modules.auth.models import Role, User
from src.modules.auth.repository import UserRepository
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository
from src.modules.teams.exceptions import (
    TeamHasMembersError,
    TeamMembershipConflictError,
    TeamNameConflictError,
    TeamNotFoundError,
    TeamValidationError,
)
from src.modules.teams.models import Team, TeamDetail, TeamOverview
from src.modules.teams.repository import TeamRepository

logger = structlog.get_logger()


class TeamService:
    """Creates teams and manages their members and repositories.

    A user belongs to at most one team. Tech leads are members that hold
    the TECH_LEAD role; assigning one to a team requires that role.
    """

    def __init__(
        self,
        teams: TeamRepository,
        users: UserRepository,
        repositories: RepositoryConfigRepository,
    ) -> None:
        self._teams = teams
        self._users = users
        self._repositories = repositories

    async def create_team(
        self, name: str, tech_lead_ids: list[int] | None = None
    ) -> TeamOverview:
        """Create a team, optionally with its tech leads.

        Raises:
            TeamNameConflictError: If the name is taken.
            TeamValidationError: If a tech lead is unknown or lacks the role.
            TeamMembershipConflictError: If a tech lead belongs to another team.
        """
        if await self._teams.exists_by_name(name):
            raise TeamNameConflictError(name)

        tech_leads = await self._validate_tech_leads(None, tech_lead_ids or [])

        try:
            team = await self._teams.create(name)
        except ValueError as e:
            raise TeamNameConflictError(name) from e

        for user in tech_leads:
            await self._users.set_team(user.id, team.id)

        return await self._overview(team)

    async def update_team(
        self, team_id: int, name: str, tech_lead_ids: list[int] | None = None
    ) -> TeamOverview:
        """Rename a team and, when ``tech_lead_ids`` is given, replace its tech leads.

        Raises:
            TeamNotFoundError: If the team does not exist.
            TeamNameConflictError: If another team uses the name.
            TeamValidationError: If a tech lead is unknown or lacks the role.
            TeamMembershipConflictError: If a tech lead belongs to another team.
        """
        team = await self._get(team_id)

        if team.name != name and await self._teams.exists_by_name(name):
            raise TeamNameConflictError(name)

        new_tech_leads: list[User] = []
        if tech_lead_ids is not None:
            new_tech_leads = await self._validate_tech_leads(team_id, tech_lead_ids)

        if team.name != name:
            try:
                await self._teams.rename(team_id, name)
            except ValueError as e:
                raise TeamNameConflictError(name) from e
            team.name = name

        if tech_lead_ids is not None:
            for current in await self._tech_leads_of(team_id):
                await self._users.set_team(current.id, None)
            for user in new_tech_leads:
                await self._users.set_team(user.id, team_id)

        return await self._overview(team)

    async def delete_team(self, team_id: int) -> None:
        """Delete an empty team.

        Raises:
            TeamNotFoundError: If the team does not exist.
            TeamHasMembersError: If the team still has members.
        """
        await self._get(team_id)
        if await self._users.count_by_team(team_id) > 0:
            raise TeamHasMembersError(team_id)
        await self._teams.delete(team_id)

    async def get_team(self, team_id: int) -> TeamDetail:
        team = await self._get(team_id)
        members = await self._users.list_by_team(team_id)
        return TeamDetail(
            team=team,
            members=members,
            tech_leads=[m for m in members if m.has_role(Role.TECH_LEAD)],
            repositories=await self._teams.list_repositories(team_id),
        )

    async def list_teams(self) -> list[TeamOverview]:
        return [await self._overview(team) for team in await self._teams.list_all()]

    async def list_members(self, team_id: int) -> list[User]:
        await self._get(team_id)
        return await self._users.list_by_team(team_id)

    async def assign_member(self, team_id: int, user_id: int) -> None:
        """Add a user to a team.

        Raises:
            TeamNotFoundError: If the team does not exist.
            TeamValidationError: If the user does not exist.
            TeamMembershipConflictError: If the user belongs to another team.
        """
        await self._get(team_id)
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise TeamValidationError(f"User not found: {user_id}")

        if user.has_role(Role.TECH_LEAD):
            await self._validate_tech_leads(team_id, [user_id])
        elif user.team_id is not None and user.team_id != team_id:
            raise TeamMembershipConflictError(user.id, user.team_id)

        await self._users.set_team(user_id, team_id)

    async def remove_member(self, team_id: int, user_id: int) -> None:
        """Remove a user from a team.

        Raises:
            TeamValidationError: If the user does not exist or is not in the team.
        """
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise TeamValidationError(f"User not found: {user_id}")
        if user.team_id != team_id:
            raise TeamValidationError("User is not a member of this team")
        await self._users.set_team(user_id, None)

    async def assign_repository(self, team_id: int, repository_id: int) -> None:
        await self._get(team_id)
        await self._get_repository(repository_id)
        await self._teams.add_repository(team_id, repository_id)

    async def remove_repository(self, team_id: int, repository_id: int) -> None:
        await self._get(team_id)
        await self._get_repository(repository_id)
        await self._teams.remove_repository(team_id, repository_id)

    async def list_repositories(self, team_id: int) -> list[RepositoryConfig]:
        await self._get(team_id)
        return await self._teams.list_repositories(team_id)

    async def _get(self, team_id: int) -> Team:
        team = await self._teams.get_by_id(team_id)
        if team is None:
            raise TeamNotFoundError(team_id)
        return team

    async def _get_repository(self, repository_id: int) -> RepositoryConfig:
        config = await self._repositories.get_by_id(repository_id)
        if config is None:
            raise TeamValidationError(f"Repository not found: {repository_id}")
        return config

    async def _tech_leads_of(self, team_id: int) -> list[User]:
        members = await self._users.list_by_team(team_id)
        return [m for m in members if m.has_role(Role.TECH_LEAD)]

    async def _validate_tech_leads(
        self, team_id: int | None, user_ids: list[int]
    ) -> list[User]:
        users: list[User] = []
        for user_id in dict.fromkeys(user_ids):
            user = await self._users.get_by_id(user_id)
            if user is None:
                raise TeamValidationError(f"User not found: {user_id}")
            if not user.has_role(Role.TECH_LEAD):
                raise TeamValidationError(
                    f"User {user_id} must have the TECH_LEAD role to lead a team"
                )
            if user.team_id is not None and user.team_id != team_id:
                raise TeamMembershipConflictError(user.id, user.team_id)
            users.append(user)
        return users

    async def _overview(self, team: Team) -> TeamOverview:
        members = await self._users.list_by_team(team.id)
        tech_lead_ids = [m.id for m in members if m.has_role(Role.TECH_LEAD)]
        return TeamOverview(
            team=team,
            member_count=len(members),
            tech_lead_count=len(tech_lead_ids),
            repository_count=await self._teams.count_repositories(team.id),
            tech_lead_ids=tech_lead_ids,
        )
