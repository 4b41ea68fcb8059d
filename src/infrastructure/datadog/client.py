"""Datadog REST API client for incidents and the service catalog."""

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog
from aiobreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.infrastructure.datadog.exceptions import (
    DatadogClientError,
    DatadogConfigurationError,
    DatadogTimeoutError,
    DatadogUnavailableError,
)
from src.infrastructure.datadog.schemas import DatadogIncident
from src.infrastructure.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

PAGE_SIZE = 100


class DatadogClient:
    """Client for the Datadog v2 API.

    Uses the same resilience patterns as the GitHub client: transport
    failures are retried once with backoff and a circuit breaker fails fast
    while Datadog is down. Unlike the GitHub client, non-2xx responses raise
    ``DatadogClientError`` because callers have no partial result to keep.
    """

    def __init__(
        self,
        api_key: str,
        application_key: str,
        *,
        base_url: str = "https://us5.datadoghq.com",
        timeout_seconds: float = 30.0,
        circuit_breaker_fail_max: int = 5,
        circuit_breaker_timeout: float = 60.0,
    ) -> None:
        """Initialize the Datadog client.

        Args:
            api_key: Datadog API key.
            application_key: Datadog application key.
            base_url: Datadog site URL.
            timeout_seconds: Request timeout in seconds.
            circuit_breaker_fail_max: Open circuit after this many failures.
            circuit_breaker_timeout: Time in seconds before attempting recovery.

        Raises:
            DatadogConfigurationError: If either key is missing.
        """
        if not api_key or not application_key:
            raise DatadogConfigurationError(
                "Datadog API key and application key are required"
            )

        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "DD-API-KEY": api_key,
                "DD-APPLICATION-KEY": application_key,
                "Accept": "application/json",
            },
        )
        self._breaker = CircuitBreaker(
            fail_max=circuit_breaker_fail_max,
            timeout_duration=timedelta(seconds=circuit_breaker_timeout),
        )
        logger.info("datadog_client_initialized", base_url=self._base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def get_incidents(
        self, since: datetime, service_name: str | None = None
    ) -> list[DatadogIncident]:
        """Fetch incidents created or modified since a point in time.

        Args:
            since: Lower bound for incident creation/modification.
            service_name: Restrict to incidents tagged ``service:<name>``.

        Returns:
            Incidents across all pages.

        Raises:
            DatadogClientError: If the request fails.
        """
        if since.tzinfo is None:
            since = since.replace(tzinfo=UTC)
        params: dict[str, Any] = {
            "filter[since]": since.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "page[size]": PAGE_SIZE,
        }
        if service_name and service_name.strip():
            params["filter[query]"] = f"service:{service_name}"

        incidents: list[DatadogIncident] = []
        offset = 0
        while True:
            params["page[offset]"] = offset
            payload = await self._get_json("/api/v2/incidents", params)
            incidents.extend(
                DatadogIncident.from_api(item) for item in payload.get("data") or []
            )

            pagination = (payload.get("meta") or {}).get("pagination") or {}
            next_offset = pagination.get("next_offset")
            if next_offset is None or int(next_offset) <= offset:
                break
            offset = int(next_offset)

        logger.info(
            "datadog_incidents_fetched",
            service_name=service_name,
            count=len(incidents),
        )
        return incidents

    async def get_services(self) -> list[str]:
        """Return the names of the services in the Datadog service catalog.

        Raises:
            DatadogClientError: If the request fails.
        """
        payload = await self._get_json("/api/v2/services/definitions", None)
        names = [
            str(item["attributes"]["name"])
            for item in payload.get("data") or []
            if (item.get("attributes") or {}).get("name")
        ]
        logger.info("datadog_services_fetched", count=len(names))
        return names

    async def _get_json(
        self, path: str, params: dict[str, Any] | None
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        with tracer.start_as_current_span("datadog.request") as span:
            span.set_attribute("http.url", url)
            try:
                response = await self._request_with_resilience(url, params)
                span.set_attribute("http.status_code", response.status_code)
                response.raise_for_status()
                data: dict[str, Any] = response.json()
                return data

            except CircuitBreakerError as e:
                span.record_exception(e)
                logger.warning("circuit_breaker_open", provider="datadog", url=url)
                raise DatadogUnavailableError(
                    "Datadog temporarily unavailable"
                ) from e

            except httpx.TimeoutException as e:
                span.record_exception(e)
                logger.warning(
                    "datadog_timeout", url=url, timeout_seconds=self._timeout
                )
                raise DatadogTimeoutError(
                    f"Datadog request timed out after {self._timeout}s"
                ) from e

            except httpx.TransportError as e:
                span.record_exception(e)
                logger.error("datadog_connection_error", url=url, error=str(e))
                raise DatadogUnavailableError("Unable to connect to Datadog") from e

            except httpx.HTTPStatusError as e:
                span.record_exception(e)
                logger.error(
                    "datadog_request_failed",
                    url=url,
                    status_code=e.response.status_code,
                )
                raise DatadogClientError(
                    f"Datadog returned {e.response.status_code}",
                    status_code=e.response.status_code,
                ) from e

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, max=5),
        reraise=True,
    )
    async def _request_with_resilience(
        self, url: str, params: dict[str, Any] | None
    ) -> httpx.Response:
        """Internal method with retry and circuit breaker logic."""
        return await self._breaker.call_async(  # type: ignore[no-any-return]
            self._client.get, url, params=params
        )
