"""Pull request synchronization from GitHub."""

from datetime import timedelta

import structlog

from src.infrastructure.database import utc_now
from src.infrastructure.github import GitHubClient
from src.modules.collector.models import PullRequest
from src.modules.collector.repository import PullRequestRepository, SyncStatusRepository
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()

JOB_PREFIX = "PULL_REQUEST_SYNC_"
DEFAULT_LOOKBACK = timedelta(days=365)


class PullRequestSyncService:
    """Imports new pull requests, with their first commit, per repository.

    Pull requests already stored are not updated.
    """

    def __init__(
        self,
        github: GitHubClient,
        pull_requests: PullRequestRepository,
        sync_status: SyncStatusRepository,
        repositories: RepositoryConfigRepository,
    ) -> None:
        self._github = github
        self._pull_requests = pull_requests
        self._sync_status = sync_status
        self._repositories = repositories

    async def sync_all(self) -> int:
        configs = await self._repositories.list_all()
        if not configs:
            logger.warning("pull_request_sync_no_repositories")
            return 0

        logger.info("pull_request_sync_started", repositories=len(configs))
        total = 0
        for config in configs:
            total += await self.sync_repository(config)
        logger.info("pull_request_sync_finished", new_pull_requests=total)
        return total

    async def sync_repository(self, config: RepositoryConfig) -> int:
        """Sync one repository; failures are logged, never raised.

        Returns:
            Number of new pull requests stored.
        """
        owner, repo = config.owner, config.repo_name
        if not owner or not repo:
            logger.error("pull_request_sync_invalid_repository", url=config.repository_url)
            return 0

        job_name = f"{JOB_PREFIX}{owner}/{repo}"
        since = await self._sync_status.get_last_run(job_name) or (
            utc_now() - DEFAULT_LOOKBACK
        )

        try:
            fetched = await self._github.get_pull_requests(owner, repo, since)
            existing = await self._pull_requests.existing_ids(pr.id for pr in fetched)

            new_pull_requests: list[PullRequest] = []
            for item in fetched:
                if item.id in existing:
                    continue
                first_commit = await self._github.get_pull_request_first_commit(
                    owner, repo, item.number
                )
                new_pull_requests.append(
                    PullRequest(
                        id=item.id,
                        repository_id=config.id,
                        number=item.number,
                        title=item.title,
                        state=item.state,
                        created_at=item.created_at,
                        updated_at=item.updated_at,
                        merged_at=item.merged_at,
                        first_commit_sha=first_commit,
                    )
                )
                existing.add(item.id)

            saved = await self._pull_requests.save_many(new_pull_requests)
            await self._sync_status.save(job_name)
            logger.info(
                "pull_request_sync_repository_done",
                repository=f"{owner}/{repo}",
                fetched=len(fetched),
                new_pull_requests=saved,
            )
            return saved

        except Exception as e:
            logger.exception(
                "pull_request_sync_repository_failed",
                repository=f"{owner}/{repo}",
                error=str(e),
            )
            return 0
