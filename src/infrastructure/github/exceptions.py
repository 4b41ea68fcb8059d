"""Custom exceptions for GitHub API operations."""


class GitHubClientError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class GitHubTimeoutError(GitHubClientError):
    """Raised when a GitHub request times out after retries."""


class GitHubUnavailableError(GitHubClientError):
    """Raised when the circuit breaker is open or GitHub cannot be reached."""


class GitHubConfigurationError(GitHubClientError):
    """Raised when there's a configuration issue (e.g., missing token)."""


class GitHubOAuthError(GitHubClientError):
    """Raised when the OAuth code exchange or user lookup fails."""
