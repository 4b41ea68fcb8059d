"""Tests for repository configuration."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.infrastructure.database import Database
from src.infrastructure.github import GitHubRepository, GitHubUnavailableError
from src.modules.auth.models import Role
from src.modules.auth.repository import UserRepository
from src.modules.collector.repository_sync import RepositorySyncService
from src.modules.repositories.exceptions import RepositoryConfigNotFoundError
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository
from src.modules.repositories.routes import router, set_repository_services
from src.modules.repositories.service import RepositoryConfigService
from src.web.dependencies import require_auth
from tests.helpers import make_user


@pytest.fixture
def repositories(database: Database) -> RepositoryConfigRepository:
    return RepositoryConfigRepository(database)


@pytest.fixture
def service(repositories: RepositoryConfigRepository) -> RepositoryConfigService:
    return RepositoryConfigService(repositories)


def remote(url: str) -> GitHubRepository:
    owner, name = url.rsplit("/", 2)[-2:]
    return GitHubRepository(id=hash(url), name=name, full_name=f"{owner}/{name}", html_url=url)


class TestRepositoryConfigModel:
    """Tests for owner/name derivation from the repository URL."""

    @pytest.mark.parametrize(
        ("url", "owner", "name"),
        [
            ("https://github.com/acme/api", "acme", "api"),
            ("https://github.com/acme/api/", "acme", "api"),
            ("https://github.com/acme/api/tree/main", "acme", "api"),
            ("https://github.com/acme", "acme", None),
            ("https://github.com", None, None),
            ("https://github.com/acme/my api", None, None),
            ("", None, None),
        ],
    )
    def test_owner_and_name(self, url: str, owner: str | None, name: str | None) -> None:
        config = RepositoryConfig(id=1, repository_url=url)

        assert config.owner == owner
        assert config.repo_name == name

    def test_full_name_needs_both_parts(self) -> None:
        assert RepositoryConfig(id=1, repository_url="https://github.com/acme/api").full_name == (
            "acme/api"
        )
        assert RepositoryConfig(id=1, repository_url="https://github.com/acme").full_name is None


class TestRepositoryConfigRepository:
    """Tests for repository configuration persistence."""

    async def test_create_and_get(self, repositories: RepositoryConfigRepository) -> None:
        created = await repositories.create(
            "https://github.com/acme/api", deployment_workflow_file_name="deploy.yml"
        )

        loaded = await repositories.get_by_id(created.id)

        assert loaded == created

    async def test_duplicate_url_raises(self, repositories: RepositoryConfigRepository) -> None:
        await repositories.create("https://github.com/acme/api")

        with pytest.raises(ValueError, match="already exists"):
            await repositories.create("https://github.com/acme/api")

    async def test_get_many_ignores_unknown_ids(
        self, repositories: RepositoryConfigRepository
    ) -> None:
        first = await repositories.create("https://github.com/acme/api")
        second = await repositories.create("https://github.com/acme/web")

        found = await repositories.get_many([second.id, first.id, 999, first.id])

        assert [c.id for c in found] == [first.id, second.id]
        assert await repositories.get_many([]) == []


class TestRepositoryConfigService:
    """Tests for RepositoryConfigService."""

    async def test_update_blank_values_clear_settings(
        self, service: RepositoryConfigService, repositories: RepositoryConfigRepository
    ) -> None:
        config = await repositories.create(
            "https://github.com/acme/api",
            datadog_service_name="api",
            deployment_workflow_file_name="deploy.yml",
        )

        updated = await service.update_repository(
            config.id, datadog_service_name="  ", deployment_workflow_file_name=" cd.yml "
        )

        assert updated.datadog_service_name is None
        assert updated.deployment_workflow_file_name == "cd.yml"

    async def test_update_unknown_repository(self, service: RepositoryConfigService) -> None:
        with pytest.raises(RepositoryConfigNotFoundError):
            await service.update_repository(
                42, datadog_service_name=None, deployment_workflow_file_name=None
            )

    async def test_ensure_default_only_seeds_empty_table(
        self, service: RepositoryConfigService
    ) -> None:
        seeded = await service.ensure_default("https://github.com/acme/api")
        again = await service.ensure_default("https://github.com/acme/other")

        assert seeded is not None
        assert again is None
        assert [c.repository_url for c in await service.list_repositories()] == [
            "https://github.com/acme/api"
        ]

    async def test_ensure_default_without_url(self, service: RepositoryConfigService) -> None:
        assert await service.ensure_default(None) is None
        assert await service.list_repositories() == []


class TestRepositorySyncService:
    """Tests for importing repositories from GitHub."""

    async def test_creates_only_new_repositories(
        self, repositories: RepositoryConfigRepository
    ) -> None:
        existing = await repositories.create(
            "https://github.com/acme/api", datadog_service_name="api"
        )
        github = AsyncMock()
        github.get_repositories.return_value = [
            remote("https://github.com/acme/api"),
            remote("https://github.com/acme/web"),
            remote("https://github.com/acme/jobs"),
        ]

        result = await RepositorySyncService(github, repositories).sync()

        assert result.new_repositories == 2
        assert result.unchanged == 1
        assert result.total_repositories == 3
        kept = await repositories.get_by_id(existing.id)
        assert kept is not None
        assert kept.datadog_service_name == "api"

    async def test_github_errors_propagate(
        self, repositories: RepositoryConfigRepository
    ) -> None:
        github = AsyncMock()
        github.get_repositories.side_effect = GitHubUnavailableError("down")

        with pytest.raises(GitHubUnavailableError):
            await RepositorySyncService(github, repositories).sync()


class TestRepositoryRoutes:
    """Tests for /api/v1/repositories."""

    @pytest.fixture
    def github(self) -> AsyncMock:
        github = AsyncMock()
        github.get_repositories.return_value = [remote("https://github.com/acme/web")]
        return github

    @pytest.fixture
    async def admin_client(
        self,
        users: UserRepository,
        service: RepositoryConfigService,
        repositories: RepositoryConfigRepository,
        github: AsyncMock,
    ) -> AsyncGenerator[TestClient]:
        admin = await make_user(users, "admin", Role.ADMIN)
        set_repository_services(service, RepositorySyncService(github, repositories))
        app = FastAPI()
        app.include_router(router)
        app.dependency_overrides[require_auth] = lambda: admin
        yield TestClient(app)

    async def test_list_includes_derived_names(
        self, admin_client: TestClient, repositories: RepositoryConfigRepository
    ) -> None:
        await repositories.create("https://github.com/acme/api")

        response = admin_client.get("/api/v1/repositories")

        assert response.status_code == 200
        assert response.json()[0]["owner"] == "acme"
        assert response.json()[0]["repo_name"] == "api"

    async def test_update_repository(
        self, admin_client: TestClient, repositories: RepositoryConfigRepository
    ) -> None:
        config = await repositories.create("https://github.com/acme/api")

        response = admin_client.put(
            f"/api/v1/repositories/{config.id}",
            json={"datadog_service_name": "api", "deployment_workflow_file_name": "deploy.yml"},
        )

        assert response.status_code == 200
        assert response.json()["datadog_service_name"] == "api"

    def test_update_unknown_repository_returns_404(self, admin_client: TestClient) -> None:
        response = admin_client.put("/api/v1/repositories/99", json={})

        assert response.status_code == 404

    def test_sync_imports_repositories(self, admin_client: TestClient) -> None:
        response = admin_client.post("/api/v1/repositories/sync")

        assert response.status_code == 200
        assert response.json() == {
            "new_repositories": 1,
            "total_repositories": 1,
            "unchanged": 0,
        }

    def test_sync_failure_returns_500(self, admin_client: TestClient, github: AsyncMock) -> None:
        github.get_repositories.side_effect = GitHubUnavailableError("down")

        response = admin_client.post("/api/v1/repositories/sync")

        assert response.status_code == 500

    async def test_sync_requires_admin(
        self, users: UserRepository, service: RepositoryConfigService
    ) -> None:
        developer = await make_user(users, "dev", Role.DEVELOPER)
        set_repository_services(service)
        app = FastAPI()
        app.include_router(router)
        app.dependency_overrides[require_auth] = lambda: developer

        response = TestClient(app).post("/api/v1/repositories/sync")

        assert response.status_code == 403
