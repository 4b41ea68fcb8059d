"""Custom exceptions for Datadog API operations."""


class DatadogClientError(Exception):
    """Base exception for Datadog API errors."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DatadogTimeoutError(DatadogClientError):
    """Raised when a Datadog request times out after retries."""


class DatadogUnavailableError(DatadogClientError):
    """Raised when the circuit breaker is open or Datadog cannot be reached."""


class DatadogConfigurationError(DatadogClientError):
    """Raised when the API or application key is missing."""
