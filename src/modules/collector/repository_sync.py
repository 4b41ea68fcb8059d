"""Import GitHub repositories as repository configurations."""

import structlog

from src.infrastructure.github import GitHubClient
from src.modules.repositories.models import RepositorySyncResult
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()


class RepositorySyncService:
    """Creates a configuration for every GitHub repository not yet tracked.

    Existing configurations are never modified or deleted, so repeated runs
    keep their Datadog service and workflow settings.
    """

    def __init__(
        self, github: GitHubClient, repositories: RepositoryConfigRepository
    ) -> None:
        self._github = github
        self._repositories = repositories

    async def sync(self) -> RepositorySyncResult:
        """Import repositories.

        Raises:
            GitHubClientError: If GitHub cannot be reached.
        """
        remote = await self._github.get_repositories()
        known = await self._repositories.list_urls()
        local_count = len(known)

        created = 0
        unchanged = 0
        for item in remote:
            if item.html_url in known:
                unchanged += 1
                continue
            await self._repositories.create(item.html_url)
            known.add(item.html_url)
            created += 1

        result = RepositorySyncResult(
            new_repositories=created,
            total_repositories=local_count + created,
            unchanged=unchanged,
        )
        logger.info(
            "repository_sync_finished",
            new_repositories=result.new_repositories,
            unchanged=result.unchanged,
            total_repositories=result.total_repositories,
        )
        return result
