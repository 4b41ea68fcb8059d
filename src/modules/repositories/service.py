"""Repository configuration service."""

import structlog

from src.modules.repositories.exceptions import RepositoryConfigNotFoundError
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class RepositoryConfigService:
    """Reads and edits the repositories the collectors track."""

    def __init__(self, repository: RepositoryConfigRepository) -> None:
        self._repo = repository

    async def list_repositories(self) -> list[RepositoryConfig]:
        return await self._repo.list_all()

    async def get_repository(self, repository_id: int) -> RepositoryConfig:
        """Get a repository configuration.

        Raises:
            RepositoryConfigNotFoundError: If it does not exist.
        """
        config = await self._repo.get_by_id(repository_id)
        if config is None:
            raise RepositoryConfigNotFoundError(repository_id)
        return config

    async def update_repository(
        self,
        repository_id: int,
        *,
        datadog_service_name: str | None,
        deployment_workflow_file_name: str | None,
    ) -> RepositoryConfig:
        """Set the Datadog service and deployment workflow of a repository.

        Blank values clear the setting.

        Raises:
            RepositoryConfigNotFoundError: If it does not exist.
        """
        updated = await self._repo.update_settings(
            repository_id,
            datadog_service_name=_blank_to_none(datadog_service_name),
            deployment_workflow_file_name=_blank_to_none(deployment_workflow_file_name),
        )
        if not updated:
            raise RepositoryConfigNotFoundError(repository_id)
        return await self.get_repository(repository_id)

    async def ensure_default(self, repository_url: str | None) -> RepositoryConfig | None:
        """Create the default repository when no repository is configured yet.

        Args:
            repository_url: URL to seed; nothing is created when unset.

        Returns:
            The created configuration, or None when nothing was seeded.
        """
        if not repository_url or await self._repo.count() > 0:
            return None
        config = await self._repo.create(repository_url)
        logger.info("default_repository_seeded", url=repository_url)
        return config
