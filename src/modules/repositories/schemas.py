"""Pydantic schemas for repository configuration API."""

from pydantic import BaseModel, Field

from src.modules.repositories.models import RepositoryConfig, RepositorySyncResult


class RepositoryConfigResponse(BaseModel):
    """Schema for a tracked repository."""

    id: int
    repository_url: str
    datadog_service_name: str | None
    owner: str | None
    repo_name: str | None
    deployment_workflow_file_name: str | None

    @classmethod
    def from_config(cls, config: RepositoryConfig) -> "RepositoryConfigResponse":
        return cls(
            id=config.id,
            repository_url=config.repository_url,
            datadog_service_name=config.datadog_service_name,
            owner=config.owner,
            repo_name=config.repo_name,
            deployment_workflow_file_name=config.deployment_workflow_file_name,
        )


class RepositoryConfigUpdate(BaseModel):
    """Schema for updating a repository's integrations."""

    datadog_service_name: str | None = Field(default=None, max_length=255)
    deployment_workflow_file_name: str | None = Field(default=None, max_length=255)


class RepositorySyncResponse(BaseModel):
    """Schema for the result of importing repositories from GitHub."""

    new_repositories: int
    total_repositories: int
    unchanged: int

    @classmethod
    def from_result(cls, result: RepositorySyncResult) -> "RepositorySyncResponse":
        return cls(
            new_repositories=result.new_repositories,
            total_repositories=result.total_repositories,
            unchanged=result.unchanged,
        )
