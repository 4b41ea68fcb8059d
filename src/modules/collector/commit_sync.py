"""Commit synchronization from GitHub."""

from datetime import timedelta

import structlog

from src.infrastructure.database import utc_now
from src.infrastructure.github import GitHubClient
from src.modules.collector.authors import AuthorResolver
from src.modules.collector.models import Commit
from src.modules.collector.repository import CommitRepository, SyncStatusRepository
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()

JOB_PREFIX = "COMMIT_SYNC_"
DEFAULT_LOOKBACK = timedelta(days=365)


class CommitSyncService:
    """Imports commits and their parent links for every configured repository."""

    def __init__(
        self,
        github: GitHubClient,
        commits: CommitRepository,
        sync_status: SyncStatusRepository,
        repositories: RepositoryConfigRepository,
        author_resolver: AuthorResolver,
    ) -> None:
        self._github = github
        self._commits = commits
        self._sync_status = sync_status
        self._repositories = repositories
        self._authors = author_resolver

    async def sync_all(self) -> int:
        """Run one sync cycle.

        Returns:
            Total number of new commits stored.
        """
        configs = await self._repositories.list_all()
        if not configs:
            logger.warning("commit_sync_no_repositories")
            return 0

        logger.info("commit_sync_started", repositories=len(configs))
        total = 0
        for config in configs:
            total += await self.sync_repository(config)
        logger.info("commit_sync_finished", new_commits=total)
        return total

    async def sync_repository(self, config: RepositoryConfig) -> int:
        """Sync one repository; failures are logged, never raised.

        Returns:
            Number of new commits stored.
        """
        owner, repo = config.owner, config.repo_name
        if not owner or not repo:
            logger.warning(
                "commit_sync_invalid_repository", url=config.repository_url
            )
            return 0

        job_name = f"{JOB_PREFIX}{owner}/{repo}"
        since = await self._sync_status.get_last_run(job_name) or (
            utc_now() - DEFAULT_LOOKBACK
        )

        try:
            fetched = await self._github.get_commits(owner, repo, since)
            existing = await self._commits.existing_shas(c.sha for c in fetched)

            new_commits: list[Commit] = []
            for item in fetched:
                if item.sha in existing:
                    continue
                if item.author_date is None:
                    logger.warning("commit_without_date_skipped", sha=item.sha)
                    continue
                new_commits.append(
                    Commit(
                        sha=item.sha,
                        repository_id=config.id,
                        author=await self._authors.resolve(item),
                        message=item.message,
                        date=item.author_date,
                    )
                )
                existing.add(item.sha)

            saved = await self._commits.save_many(new_commits)
            links = await self._commits.save_parent_links(
                [(item.sha, parent) for item in fetched for parent in item.parent_shas]
            )

            await self._sync_status.save(job_name)
            logger.info(
                "commit_sync_repository_done",
                repository=f"{owner}/{repo}",
                fetched=len(fetched),
                new_commits=saved,
                new_parent_links=links,
            )
            return saved

        except Exception as e:
            logger.exception(
                "commit_sync_repository_failed",
                repository=f"{owner}/{repo}",
                error=str(e),
            )
            return 0
