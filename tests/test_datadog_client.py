"""Tests for the Datadog API client."""

from datetime import UTC, datetime

import httpx
import pytest

from src.infrastructure.datadog import (
    DatadogClient,
    DatadogClientError,
    DatadogConfigurationError,
    DatadogIncident,
    DatadogUnavailableError,
)


def make_client(handler, **kwargs) -> DatadogClient:
    client = DatadogClient("api-key", "app-key", base_url="https://dd.test", **kwargs)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def incident(incident_id: str, **attributes) -> dict:
    return {"id": incident_id, "type": "incidents", "attributes": attributes}


class TestDatadogIncident:
    """Tests for incident payload parsing."""

    def test_reads_top_level_attributes(self) -> None:
        parsed = DatadogIncident.from_api(
            incident(
                "inc-1",
                title="API down",
                state="resolved",
                severity="SEV-1",
                created="2024-03-01T10:00:00Z",
                resolved="2024-03-01T12:00:00Z",
                customer_impact_scope="All users",
            )
        )

        assert parsed.state == "resolved"
        assert parsed.severity == "SEV-1"
        assert parsed.resolved == datetime(2024, 3, 1, 12, tzinfo=UTC)
        assert parsed.modified is None

    def test_falls_back_to_custom_fields(self) -> None:
        parsed = DatadogIncident.from_api(
            incident(
                "inc-2",
                fields={
                    "state": {"type": "dropdown", "value": "active"},
                    "severity": {"type": "dropdown", "value": "SEV-3"},
                },
            )
        )

        assert parsed.state == "active"
        assert parsed.severity == "SEV-3"


class TestDatadogClient:
    """Tests for DatadogClient."""

    def test_requires_both_keys(self) -> None:
        with pytest.raises(DatadogConfigurationError):
            DatadogClient("api-key", "")

    async def test_get_incidents_pages_by_offset(self) -> None:
        offsets: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["DD-API-KEY"] == "api-key"
            offset = request.url.params["page[offset]"]
            offsets.append(offset)
            if offset == "0":
                return httpx.Response(
                    200,
                    json={
                        "data": [incident("a"), incident("b")],
                        "meta": {"pagination": {"offset": 0, "next_offset": 2}},
                    },
                )
            return httpx.Response(
                200,
                json={
                    "data": [incident("c")],
                    "meta": {"pagination": {"offset": 2, "next_offset": 2}},
                },
            )

        client = make_client(handler)
        client._client.headers.update({"DD-API-KEY": "api-key"})

        incidents = await client.get_incidents(datetime(2024, 3, 1, tzinfo=UTC))

        assert [i.id for i in incidents] == ["a", "b", "c"]
        assert offsets == ["0", "2"]

    async def test_get_incidents_filters_by_service(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["filter[query]"] == "service:payments"
            assert request.url.params["filter[since]"] == "2024-03-01T00:00:00Z"
            return httpx.Response(200, json={"data": []})

        client = make_client(handler)

        assert await client.get_incidents(datetime(2024, 3, 1), "payments") == []

    async def test_blank_service_name_is_not_a_filter(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert "filter[query]" not in request.url.params
            return httpx.Response(200, json={"data": []})

        await make_client(handler).get_incidents(datetime(2024, 3, 1, tzinfo=UTC), "  ")

    async def test_get_services_lists_names(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v2/services/definitions"
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"attributes": {"name": "payments"}},
                        {"attributes": {}},
                        {"attributes": {"name": "checkout"}},
                    ]
                },
            )

        assert await make_client(handler).get_services() == ["payments", "checkout"]

    async def test_error_status_raises_client_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"errors": ["Forbidden"]})

        with pytest.raises(DatadogClientError) as exc_info:
            await make_client(handler).get_services()

        assert exc_info.value.status_code == 403

    async def test_connection_failure_raises_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler, circuit_breaker_fail_max=1)

        with pytest.raises(DatadogUnavailableError):
            await client.get_services()
