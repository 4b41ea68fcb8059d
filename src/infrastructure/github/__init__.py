"""GitHub REST API integration."""

from src.infrastructure.github.client import GitHubClient, parse_next_link
from src.infrastructure.github.exceptions import (
    GitHubClientError,
    GitHubConfigurationError,
    GitHubOAuthError,
    GitHubTimeoutError,
    GitHubUnavailableError,
)
from src.infrastructure.github.oauth import GitHubOAuthClient
from src.infrastructure.github.schemas import (
    GitHubCommit,
    GitHubMember,
    GitHubPullRequest,
    GitHubRepository,
    GitHubUser,
    GitHubWorkflowRun,
)

__all__ = [
    "GitHubClient",
    "GitHubClientError",
    "GitHubCommit",
    "GitHubConfigurationError",
    "GitHubMember",
    "GitHubOAuthClient",
    "GitHubOAuthError",
    "GitHubPullRequest",
    "GitHubRepository",
    "GitHubTimeoutError",
    "GitHubUnavailableError",
    "GitHubUser",
    "GitHubWorkflowRun",
    "parse_next_link",
]
