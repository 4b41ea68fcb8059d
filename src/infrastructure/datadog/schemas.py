"""Schemas for Datadog API payloads."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.infrastructure.database import from_db


def _field_value(fields: dict[str, Any], name: str) -> str | None:
    value = fields.get(name)
    if isinstance(value, dict):
        return value.get("value")
    return None


@dataclass
class DatadogIncident:
    """An incident from ``GET /api/v2/incidents``.

    ``state`` and ``severity`` are read from the top-level attributes and
    fall back to the incident's custom ``fields`` block.
    """

    id: str
    title: str | None
    state: str | None
    severity: str | None
    created: datetime | None
    modified: datetime | None
    resolved: datetime | None
    customer_impact_scope: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DatadogIncident":
        attributes = data.get("attributes") or {}
        fields = attributes.get("fields") or {}
        return cls(
            id=str(data["id"]),
            title=attributes.get("title"),
            state=attributes.get("state") or _field_value(fields, "state"),
            severity=attributes.get("severity") or _field_value(fields, "severity"),
            created=from_db(attributes.get("created")),
            modified=from_db(attributes.get("modified")),
            resolved=from_db(attributes.get("resolved")),
            customer_impact_scope=attributes.get("customer_impact_scope"),
        )
