"""Tests for admin sync triggers, the Datadog catalog route and rate limiting."""

from collections.abc import Generator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.rate_limit import _get_rate_limit_key, get_rate_limit_string, limiter
from src.config import Settings, get_settings
from src.infrastructure.datadog import DatadogUnavailableError
from src.main import app
from src.modules.auth.models import Role, User
from src.modules.collector.routes import set_collector_services
from src.modules.collector.user_sync import UserSyncResult
from src.web.dependencies import require_auth

NOW = datetime(2024, 3, 1, tzinfo=UTC)


def user_with(*roles: Role) -> User:
    return User(
        id=7,
        github_id=7,
        github_username="admin",
        email=None,
        name=None,
        avatar_url=None,
        is_active=True,
        team_id=None,
        created_at=NOW,
        updated_at=NOW,
        roles=set(roles),
    )


@pytest.fixture
def deployment_sync() -> AsyncMock:
    service = AsyncMock()
    service.sync_all.return_value = 2
    return service


@pytest.fixture
def user_sync() -> AsyncMock:
    service = AsyncMock()
    service.sync.return_value = UserSyncResult(created=1, updated=2, deactivated=3)
    return service


@pytest.fixture
def datadog() -> AsyncMock:
    client = AsyncMock()
    client.get_services.return_value = ["payments", "Checkout", "api"]
    return client


@pytest.fixture
def client(
    deployment_sync: AsyncMock, user_sync: AsyncMock, datadog: AsyncMock
) -> Generator[TestClient, None, None]:
    """Admin client with mocked collector services."""
    limiter.reset()
    set_collector_services(
        deployment_sync=deployment_sync, user_sync=user_sync, datadog_client=datadog
    )
    app.dependency_overrides[require_auth] = lambda: user_with(Role.ADMIN)
    app.dependency_overrides[get_settings] = lambda: Settings(
        github_organization_name="acme"
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    set_collector_services()


class TestDeploymentSyncTrigger:
    """Tests for POST /api/v1/admin/sync/deployments."""

    def test_runs_sync(self, client: TestClient, deployment_sync: AsyncMock) -> None:
        response = client.post("/api/v1/admin/sync/deployments")

        assert response.status_code == 200
        assert "triggered successfully" in response.json()["message"]
        deployment_sync.sync_all.assert_awaited_once()

    def test_failure_returns_500(self, client: TestClient, deployment_sync: AsyncMock) -> None:
        deployment_sync.sync_all.side_effect = RuntimeError("boom")

        response = client.post("/api/v1/admin/sync/deployments")

        assert response.status_code == 500
        assert "boom" in response.json()["error"]

    def test_requires_admin(self, client: TestClient) -> None:
        app.dependency_overrides[require_auth] = lambda: user_with(Role.ENGINEERING_MANAGER)

        response = client.post("/api/v1/admin/sync/deployments")

        assert response.status_code == 403

    def test_not_configured_returns_503(self, client: TestClient) -> None:
        set_collector_services()

        response = client.post("/api/v1/admin/sync/deployments")

        assert response.status_code == 503


class TestUserSyncTrigger:
    """Tests for POST /api/v1/admin/sync/users."""

    def test_returns_counts(self, client: TestClient, user_sync: AsyncMock) -> None:
        response = client.post("/api/v1/admin/sync/users")

        assert response.status_code == 200
        assert response.json() == {"created": 1, "updated": 2, "deactivated": 3}
        user_sync.sync.assert_awaited_once_with("acme")

    def test_requires_organization(self, client: TestClient) -> None:
        app.dependency_overrides[get_settings] = lambda: Settings(github_organization_name=None)

        response = client.post("/api/v1/admin/sync/users")

        assert response.status_code == 400

    def test_failure_returns_500(self, client: TestClient, user_sync: AsyncMock) -> None:
        user_sync.sync.side_effect = RuntimeError("boom")

        response = client.post("/api/v1/admin/sync/users")

        assert response.status_code == 500


class TestDatadogServices:
    """Tests for GET /api/v1/datadog/services."""

    def test_sorted_ignoring_case(self, client: TestClient) -> None:
        response = client.get("/api/v1/datadog/services")

        assert response.status_code == 200
        assert [s["service_name"] for s in response.json()] == ["api", "Checkout", "payments"]

    def test_datadog_failure_returns_500(self, client: TestClient, datadog: AsyncMock) -> None:
        datadog.get_services.side_effect = DatadogUnavailableError("down")

        response = client.get("/api/v1/datadog/services")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch services from Datadog"

    def test_not_configured_returns_503(self, client: TestClient) -> None:
        set_collector_services()

        assert client.get("/api/v1/datadog/services").status_code == 503


class TestRateLimiting:
    """Tests for sync trigger rate limiting."""

    def test_limit_string_from_settings(self) -> None:
        assert get_rate_limit_string() == "10/minute"

    def test_key_prefers_user_id(self) -> None:
        request = MagicMock()
        request.state.user_id = 42

        assert _get_rate_limit_key(request) == "user:42"

    def test_exceeding_limit_returns_429(self, client: TestClient) -> None:
        for _ in range(11):
            response = client.post("/api/v1/admin/sync/deployments")
            if response.status_code == 429:
                break

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"
        assert "Please wait" in response.json()["message"]
