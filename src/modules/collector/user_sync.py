"""Mirror GitHub organization membership into local users."""

from dataclasses import dataclass

import structlog

from src.infrastructure.github import GitHubClient
from src.modules.auth.repository import UserRepository

logger = structlog.get_logger()


@dataclass
class UserSyncResult:
    created: int = 0
    updated: int = 0
    deactivated: int = 0


class UserSyncService:
    """Keeps local users in step with the members of a GitHub organization.

    Members without a local account are created active and without roles;
    known members get their login and avatar refreshed and are reactivated.
    Active users who left the organization are deactivated.
    """

    def __init__(self, github: GitHubClient, users: UserRepository) -> None:
        self._github = github
        self._users = users

    async def sync(self, organization: str) -> UserSyncResult:
        """Synchronize users with an organization.

        Raises:
            GitHubClientError: If GitHub cannot be reached.
        """
        members = await self._github.get_organization_members(organization)
        local = {u.github_id: u for u in await self._users.list_all(include_inactive=True)}
        member_ids = {m.id for m in members}
        result = UserSyncResult()

        for member in members:
            user = local.get(member.id)
            if user is None:
                try:
                    await self._users.create(
                        member.id, member.login, avatar_url=member.avatar_url
                    )
                except ValueError as e:
                    logger.error(
                        "user_sync_create_failed", github_username=member.login, error=str(e)
                    )
                    continue
                result.created += 1
            else:
                try:
                    await self._users.update_profile(
                        user.id,
                        github_username=member.login,
                        avatar_url=member.avatar_url,
                        is_active=True,
                    )
                except ValueError as e:
                    logger.error(
                        "user_sync_update_failed", github_username=member.login, error=str(e)
                    )
                    continue
                result.updated += 1

        for user in local.values():
            if user.is_active and user.github_id not in member_ids:
                await self._users.set_active(user.id, False)
                result.deactivated += 1

        logger.info(
            "user_sync_finished",
            organization=organization,
            members=len(members),
            created=result.created,
            updated=result.updated,
            deactivated=result.deactivated,
        )
        return result
