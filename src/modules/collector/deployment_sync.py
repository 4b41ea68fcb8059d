"""Deployment synchronization from GitHub Actions workflow runs."""

from typing import Protocol

import structlog

from src.infrastructure.github import GitHubClient
from src.modules.collector.models import Deployment, environment_for_branch
from src.modules.collector.repository import DeploymentRepository, SyncStatusRepository
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()

JOB_PREFIX = "DEPLOYMENT_SYNC_"
SUCCESS_CONCLUSION = "success"


class LeadTimeProcessor(Protocol):
    """Anything that attributes commits to newly stored deployments."""

    async def calculate(self) -> int: ...


class DeploymentSyncService:
    """Imports successful runs of each repository's deployment workflow.

    Runs on the production branch become production deployments. Lead
    times are recalculated whenever new deployments are stored.
    """

    def __init__(
        self,
        github: GitHubClient,
        deployments: DeploymentRepository,
        sync_status: SyncStatusRepository,
        repositories: RepositoryConfigRepository,
        lead_times: LeadTimeProcessor,
    ) -> None:
        self._github = github
        self._deployments = deployments
        self._sync_status = sync_status
        self._repositories = repositories
        self._lead_times = lead_times

    async def sync_all(self) -> int:
        """Sync every repository with a deployment workflow.

        Returns:
            Total number of new deployments stored.
        """
        configs = await self._repositories.list_all()
        logger.info("deployment_sync_started", repositories=len(configs))
        total = 0
        for config in configs:
            total += await self.sync_repository(config)
        logger.info("deployment_sync_finished", new_deployments=total)
        return total

    async def sync_repository(self, config: RepositoryConfig) -> int:
        owner, repo = config.owner, config.repo_name
        workflow = config.deployment_workflow_file_name
        if not owner or not repo or not workflow:
            logger.info(
                "deployment_sync_repository_skipped",
                url=config.repository_url,
                has_workflow=bool(workflow),
            )
            return 0

        job_name = f"{JOB_PREFIX}{repo}"
        try:
            since = await self._sync_status.get_last_run(job_name)
            runs = await self._github.get_workflow_runs(owner, repo, workflow, since)

            candidates = [
                run
                for run in runs
                if run.conclusion == SUCCESS_CONCLUSION
                and run.head_sha
                and run.head_sha.strip()
                and run.created_at is not None
            ]
            existing = await self._deployments.existing_github_ids(
                run.id for run in candidates
            )

            new_deployments = [
                Deployment(
                    id=0,
                    github_id=run.id,
                    repository_id=config.id,
                    name=run.name,
                    head_branch=run.head_branch,
                    sha=run.head_sha,
                    service_name=config.datadog_service_name,
                    status=run.status,
                    conclusion=run.conclusion,
                    environment=environment_for_branch(run.head_branch),
                    created_at=run.created_at,
                    updated_at=run.updated_at,
                )
                for run in candidates
                if run.id not in existing
            ]

            if not new_deployments:
                logger.info(
                    "deployment_sync_nothing_new",
                    repository=f"{owner}/{repo}",
                    runs=len(runs),
                )
                return 0

            saved = await self._deployments.save_many(new_deployments)
            await self._lead_times.calculate()
            await self._sync_status.save(job_name)
            logger.info(
                "deployment_sync_repository_done",
                repository=f"{owner}/{repo}",
                runs=len(runs),
                new_deployments=saved,
            )
            return saved

        except Exception as e:
            logger.exception(
                "deployment_sync_repository_failed",
                repository=f"{owner}/{repo}",
                error=str(e),
            )
            return 0
