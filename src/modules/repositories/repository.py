"""Repository configuration persistence."""

import sqlite3
from collections.abc import Iterable

import structlog

from src.infrastructure.database import Database
from src.modules.repositories.models import RepositoryConfig

logger = structlog.get_logger()


class RepositoryConfigRepository:
    """Database access for tracked repository configurations."""

    def __init__(self, database: Database) -> None:
        """Initialize the repository.

        Args:
            database: Database connection.
        """
        self._db = database

    async def create(
        self,
        repository_url: str,
        *,
        datadog_service_name: str | None = None,
        deployment_workflow_file_name: str | None = None,
    ) -> RepositoryConfig:
        """Create a repository configuration.

        Raises:
            ValueError: If the URL is already configured.
        """
        try:
            cursor = await self._db.execute(
                """
                INSERT INTO repository_configs
                    (repository_url, datadog_service_name, deployment_workflow_file_name)
                VALUES (?, ?, ?)
                """,
                (repository_url, datadog_service_name, deployment_workflow_file_name),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise ValueError(f"Repository {repository_url} already exists") from e
            raise

        config = RepositoryConfig(
            id=int(cursor.lastrowid or 0),
            repository_url=repository_url,
            datadog_service_name=datadog_service_name,
            deployment_workflow_file_name=deployment_workflow_file_name,
        )
        logger.info("repository_config_created", repository_id=config.id, url=repository_url)
        return config

    async def get_by_id(self, repository_id: int) -> RepositoryConfig | None:
        row = await self._db.fetch_one(
            "SELECT * FROM repository_configs WHERE id = ?", (repository_id,)
        )
        return RepositoryConfig.from_row(dict(row)) if row else None

    async def get_many(self, repository_ids: Iterable[int]) -> list[RepositoryConfig]:
        ids = list(dict.fromkeys(repository_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._db.fetch_all(
            f"SELECT * FROM repository_configs WHERE id IN ({placeholders}) ORDER BY id",  # nosec B608
            tuple(ids),
        )
        return [RepositoryConfig.from_row(dict(row)) for row in rows]

    async def list_all(self) -> list[RepositoryConfig]:
        rows = await self._db.fetch_all("SELECT * FROM repository_configs ORDER BY id")
        return [RepositoryConfig.from_row(dict(row)) for row in rows]

    async def list_urls(self) -> set[str]:
        rows = await self._db.fetch_all("SELECT repository_url FROM repository_configs")
        return {str(row["repository_url"]) for row in rows}

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) AS count FROM repository_configs")
        return int(row["count"]) if row else 0

    async def update_settings(
        self,
        repository_id: int,
        *,
        datadog_service_name: str | None,
        deployment_workflow_file_name: str | None,
    ) -> bool:
        """Update the Datadog service and deployment workflow of a repository.

        Returns:
            True if updated, False if not found.
        """
        cursor = await self._db.execute(
            """
            UPDATE repository_configs
            SET datadog_service_name = ?, deployment_workflow_file_name = ?
            WHERE id = ?
            """,
            (datadog_service_name, deployment_workflow_file_name, repository_id),
        )
        updated = cursor.rowcount > 0
        if updated:
            logger.info(
                "repository_config_updated",
                repository_id=repository_id,
                datadog_service_name=datadog_service_name,
                workflow=deployment_workflow_file_name,
            )
        return updated
