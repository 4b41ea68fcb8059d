"""Repository configuration: tracked GitHub repositories and their integrations."""

from src.modules.repositories.exceptions import (
    RepositoryConfigError,
    RepositoryConfigNotFoundError,
)
from src.modules.repositories.models import RepositoryConfig, RepositorySyncResult
from src.modules.repositories.repository import RepositoryConfigRepository
from src.modules.repositories.service import RepositoryConfigService

__all__ = [
    "RepositoryConfig",
    "RepositoryConfigError",
    "RepositoryConfigNotFoundError",
    "RepositoryConfigRepository",
    "RepositoryConfigService",
    "RepositorySyncResult",
]
