"""Datadog incidents and service catalog integration."""

from src.infrastructure.datadog.client import DatadogClient
from src.infrastructure.datadog.exceptions import (
    DatadogClientError,
    DatadogConfigurationError,
    DatadogTimeoutError,
    DatadogUnavailableError,
)
from src.infrastructure.datadog.schemas import DatadogIncident

__all__ = [
    "DatadogClient",
    "DatadogClientError",
    "DatadogConfigurationError",
    "DatadogIncident",
    "DatadogTimeoutError",
    "DatadogUnavailableError",
]
