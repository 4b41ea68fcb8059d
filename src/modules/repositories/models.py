"""Repository configuration domain model."""

from dataclasses import dataclass
from urllib.parse import urlsplit


def _path_parts(url: str | None) -> list[str]:
    """Split the path of a repository URL into its segments.

    Returns an empty list for blank, malformed or path-less URLs.
    """
    if url is None:
        return []
    url = url.strip()
    if not url or any(c.isspace() for c in url):
        return []
    try:
        path = urlsplit(url).path
    except ValueError:
        return []

    path = path.strip("/")
    if not path:
        return []
    return path.split("/")


@dataclass
class RepositoryConfig:
    """A GitHub repository tracked by the collectors.

    Attributes:
        id: Local identifier.
        repository_url: GitHub HTML URL, e.g. ``https://github.com/acme/api``.
        datadog_service_name: Datadog service used for incidents.
        deployment_workflow_file_name: Workflow file whose successful runs
            count as deployments.
    """

    id: int
    repository_url: str
    datadog_service_name: str | None = None
    deployment_workflow_file_name: str | None = None

    @property
    def owner(self) -> str | None:
        parts = _path_parts(self.repository_url)
        if parts and parts[0].strip():
            return parts[0]
        return None

    @property
    def repo_name(self) -> str | None:
        parts = _path_parts(self.repository_url)
        if len(parts) >= 2 and parts[1].strip():
            return parts[1]
        return None

    @property
    def full_name(self) -> str | None:
        """``owner/repo`` when both parts can be derived."""
        if self.owner and self.repo_name:
            return f"{self.owner}/{self.repo_name}"
        return None

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "RepositoryConfig":
        return cls(
            id=int(row["id"]),
            repository_url=str(row["repository_url"]),
            datadog_service_name=(
                str(row["datadog_service_name"]) if row["datadog_service_name"] else None
            ),
            deployment_workflow_file_name=(
                str(row["deployment_workflow_file_name"])
                if row["deployment_workflow_file_name"]
                else None
            ),
        )


@dataclass
class RepositorySyncResult:
    """Outcome of importing repositories from GitHub."""

    new_repositories: int
    total_repositories: int
    unchanged: int
