"""Incident synchronization from Datadog."""

from dataclasses import dataclass
from datetime import timedelta

import structlog

from src.infrastructure.database import utc_now
from src.infrastructure.datadog import DatadogClient, DatadogIncident
from src.modules.collector.models import IncidentSeverity, IncidentState
from src.modules.collector.repository import IncidentRepository, SyncStatusRepository
from src.modules.repositories.models import RepositoryConfig
from src.modules.repositories.repository import RepositoryConfigRepository

logger = structlog.get_logger()

JOB_PREFIX = "DATADOG_INCIDENT_SYNC_"
DEFAULT_LOOKBACK = timedelta(days=30)


@dataclass
class IncidentSyncResult:
    """Counts of one incident sync cycle."""

    created: int = 0
    updated: int = 0

    def add(self, other: "IncidentSyncResult") -> None:
        self.created += other.created
        self.updated += other.updated


class IncidentSyncService:
    """Upserts Datadog incidents for repositories linked to a Datadog service."""

    def __init__(
        self,
        datadog: DatadogClient,
        incidents: IncidentRepository,
        sync_status: SyncStatusRepository,
        repositories: RepositoryConfigRepository,
    ) -> None:
        self._datadog = datadog
        self._incidents = incidents
        self._sync_status = sync_status
        self._repositories = repositories

    async def sync_all(self) -> IncidentSyncResult:
        configs = [
            c
            for c in await self._repositories.list_all()
            if c.datadog_service_name and c.datadog_service_name.strip()
        ]
        result = IncidentSyncResult()
        if not configs:
            logger.info("incident_sync_no_services")
            return result

        for config in configs:
            result.add(await self.sync_service(config))

        logger.info(
            "incident_sync_finished",
            services=len(configs),
            created=result.created,
            updated=result.updated,
        )
        return result

    async def sync_service(self, config: RepositoryConfig) -> IncidentSyncResult:
        """Sync the incidents of one repository's Datadog service.

        A failing incident is logged and skipped. A failing fetch is logged
        and leaves the watermark untouched.
        """
        service_name = (config.datadog_service_name or "").strip()
        job_name = f"{JOB_PREFIX}{service_name}"
        since = await self._sync_status.get_last_run(job_name) or (
            utc_now() - DEFAULT_LOOKBACK
        )
        result = IncidentSyncResult()

        try:
            incidents = await self._datadog.get_incidents(since, service_name)
        except Exception as e:
            logger.exception(
                "incident_sync_service_failed", service=service_name, error=str(e)
            )
            return result

        for incident in incidents:
            try:
                if await self._upsert(incident, config, service_name):
                    result.created += 1
                else:
                    result.updated += 1
            except Exception as e:
                logger.exception(
                    "incident_sync_item_failed",
                    service=service_name,
                    incident_id=incident.id,
                    error=str(e),
                )

        await self._sync_status.save(job_name)
        logger.info(
            "incident_sync_service_done",
            service=service_name,
            fetched=len(incidents),
            created=result.created,
            updated=result.updated,
        )
        return result

    async def _upsert(
        self, incident: DatadogIncident, config: RepositoryConfig, service_name: str
    ) -> bool:
        """Insert or update one incident; returns True when it was created."""
        if incident.created is None:
            raise ValueError(f"Incident {incident.id} has no creation time")

        state = IncidentState.from_datadog(incident.state)
        severity = IncidentSeverity.from_datadog(incident.severity)
        updated_at = incident.modified or incident.created
        duration = None
        if incident.resolved is not None:
            duration = int((incident.resolved - incident.created).total_seconds())

        existing = await self._incidents.get_by_datadog_id(incident.id)
        if existing is not None:
            await self._incidents.update_status(
                existing.id,
                state=state,
                severity=severity,
                resolved_time=incident.resolved,
                duration_seconds=duration,
                updated_at=updated_at,
            )
            return False

        await self._incidents.create(
            datadog_incident_id=incident.id,
            repository_id=config.id,
            title=incident.title,
            state=state,
            severity=severity,
            start_time=incident.created,
            resolved_time=incident.resolved,
            duration_seconds=duration,
            service_name=service_name,
            created_at=incident.created,
            updated_at=updated_at,
        )
        return True
