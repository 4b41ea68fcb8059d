"""Tests for deployment synchronization."""

from unittest.mock import AsyncMock

import pytest

from src.infrastructure.database import Database
from src.infrastructure.github import GitHubUnavailableError, GitHubWorkflowRun
from src.modules.collector.deployment_sync import DeploymentSyncService
from src.modules.collector.models import environment_for_branch
from src.modules.collector.repository import DeploymentRepository, SyncStatusRepository
from src.modules.repositories.repository import RepositoryConfigRepository
from tests.helpers import at


def workflow_run(
    run_id: int,
    sha: str | None = "abc",
    *,
    branch: str = "main",
    conclusion: str | None = "success",
    day: int = 1,
) -> GitHubWorkflowRun:
    return GitHubWorkflowRun(
        id=run_id,
        name="Deploy",
        head_branch=branch,
        head_sha=sha,
        status="completed",
        conclusion=conclusion,
        created_at=at(day),
        updated_at=at(day, 1),
    )


@pytest.fixture
def deployments(database: Database) -> DeploymentRepository:
    return DeploymentRepository(database)


@pytest.fixture
def sync_status(database: Database) -> SyncStatusRepository:
    return SyncStatusRepository(database)


@pytest.fixture
def repositories(database: Database) -> RepositoryConfigRepository:
    return RepositoryConfigRepository(database)


@pytest.fixture
def github() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def lead_times() -> AsyncMock:
    lead_times = AsyncMock()
    lead_times.calculate.return_value = 0
    return lead_times


@pytest.fixture
def service(
    github: AsyncMock,
    deployments: DeploymentRepository,
    sync_status: SyncStatusRepository,
    repositories: RepositoryConfigRepository,
    lead_times: AsyncMock,
) -> DeploymentSyncService:
    return DeploymentSyncService(github, deployments, sync_status, repositories, lead_times)


class TestEnvironmentForBranch:
    @pytest.mark.parametrize(
        ("branch", "expected"),
        [("main", "production"), ("develop", None), ("Main", None), (None, None)],
    )
    def test_only_main_is_production(self, branch: str | None, expected: str | None) -> None:
        assert environment_for_branch(branch) == expected


class TestDeploymentSyncService:
    """Tests for DeploymentSyncService."""

    async def test_stores_successful_runs(
        self,
        service: DeploymentSyncService,
        github: AsyncMock,
        deployments: DeploymentRepository,
        repositories: RepositoryConfigRepository,
        lead_times: AsyncMock,
    ) -> None:
        config = await repositories.create(
            "https://github.com/acme/api",
            datadog_service_name="api",
            deployment_workflow_file_name="deploy.yml",
        )
        github.get_workflow_runs.return_value = [
            workflow_run(1, "sha-1", day=1),
            workflow_run(2, "sha-2", branch="feature/x", day=2),
            workflow_run(3, "sha-3", conclusion="failure", day=3),
            workflow_run(4, "  ", day=4),
            workflow_run(5, None, day=5),
        ]

        assert await service.sync_all() == 2

        stored = await deployments.list_between("production", at(1), at(31))
        assert [(d.github_id, d.sha, d.service_name) for d in stored] == [
            (1, "sha-1", "api")
        ]
        lead_times.calculate.assert_awaited_once()
        args = github.get_workflow_runs.await_args.args
        assert args[:3] == ("acme", "api", "deploy.yml")
        assert args[3] is None

    async def test_known_runs_are_not_stored_twice(
        self,
        service: DeploymentSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
        lead_times: AsyncMock,
    ) -> None:
        await repositories.create(
            "https://github.com/acme/api", deployment_workflow_file_name="deploy.yml"
        )
        github.get_workflow_runs.return_value = [workflow_run(1)]
        await service.sync_all()
        lead_times.calculate.reset_mock()

        assert await service.sync_all() == 0
        lead_times.calculate.assert_not_called()

    async def test_watermark_saved_after_new_deployments(
        self,
        service: DeploymentSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
        sync_status: SyncStatusRepository,
    ) -> None:
        await repositories.create(
            "https://github.com/acme/api", deployment_workflow_file_name="deploy.yml"
        )
        github.get_workflow_runs.return_value = [workflow_run(1)]

        await service.sync_all()

        watermark = await sync_status.get_last_run("DEPLOYMENT_SYNC_api")
        assert watermark is not None
        await service.sync_all()
        assert github.get_workflow_runs.await_args.args[3] == watermark

    async def test_repositories_without_workflow_are_skipped(
        self,
        service: DeploymentSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
    ) -> None:
        await repositories.create("https://github.com/acme/api")
        await repositories.create(
            "https://github.com/acme", deployment_workflow_file_name="deploy.yml"
        )

        assert await service.sync_all() == 0
        github.get_workflow_runs.assert_not_called()

    async def test_failure_is_isolated_per_repository(
        self,
        service: DeploymentSyncService,
        github: AsyncMock,
        repositories: RepositoryConfigRepository,
        sync_status: SyncStatusRepository,
    ) -> None:
        await repositories.create(
            "https://github.com/acme/api", deployment_workflow_file_name="deploy.yml"
        )
        await repositories.create(
            "https://github.com/acme/web", deployment_workflow_file_name="deploy.yml"
        )

        async def get_workflow_runs(owner, repo, workflow, since):
            if repo == "api":
                raise GitHubUnavailableError("down")
            return [workflow_run(7)]

        github.get_workflow_runs.side_effect = get_workflow_runs

        assert await service.sync_all() == 1
        assert await sync_status.get_last_run("DEPLOYMENT_SYNC_api") is None
        assert await sync_status.get_last_run("DEPLOYMENT_SYNC_web") is not None
