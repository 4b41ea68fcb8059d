"""Tests for the health check endpoint."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.config import get_settings
from src.infrastructure.database import Database
from src.main import app


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Client without the application lifespan, so no scheduler starts."""
    yield TestClient(app)


class TestHealthCheck:
    """Tests for GET /health."""

    async def test_healthy_when_database_answers(
        self, client: TestClient, database: Database
    ) -> None:
        with patch("src.api.health.get_database", return_value=database):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "version": get_settings().app_version,
            "database": "ok",
        }

    def test_unhealthy_when_database_not_initialized(self, client: TestClient) -> None:
        with patch(
            "src.api.health.get_database",
            side_effect=RuntimeError("Database not initialized"),
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["detail"] == "Metrics database unavailable: RuntimeError"

    def test_unhealthy_when_query_fails(self, client: TestClient) -> None:
        broken = AsyncMock()
        broken.execute.side_effect = OSError("disk I/O error")

        with patch("src.api.health.get_database", return_value=broken):
            response = client.get("/health")

        assert response.status_code == 503
        assert "OSError" in response.json()["detail"]
