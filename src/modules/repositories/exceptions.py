"""Repository configuration exceptions."""


class RepositoryConfigError(Exception):
    """Base exception for repository configuration operations."""

    pass


class RepositoryConfigNotFoundError(RepositoryConfigError):
    """Raised when a repository configuration is not found."""

    def __init__(self, repository_id: int) -> None:
        self.repository_id = repository_id
        super().__init__(f"Repository not found: {repository_id}")
