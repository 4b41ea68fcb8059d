"""Change lead time persistence."""

from collections.abc import Iterable

import structlog

from src.infrastructure.database import Database
from src.modules.metrics.models import ChangeLeadTime, LeadTimeRecord

logger = structlog.get_logger()

_CHUNK_SIZE = 500


class ChangeLeadTimeRepository:
    """Lead times, unique per (commit, deployment)."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def save_many(
        self, deployment_id: int, lead_times: Iterable[tuple[str, int]]
    ) -> int:
        """Store ``(commit_sha, lead_time_seconds)`` pairs for a deployment.

        Pairs already stored for the deployment are ignored.

        Returns:
            Number of rows inserted.
        """
        return await self._db.execute_many(
            """
            INSERT OR IGNORE INTO change_lead_times
                (commit_sha, deployment_id, lead_time_seconds)
            VALUES (?, ?, ?)
            """,
            [(sha, deployment_id, seconds) for sha, seconds in lead_times],
        )

    async def list_by_deployment(self, deployment_id: int) -> list[ChangeLeadTime]:
        rows = await self._db.fetch_all(
            "SELECT * FROM change_lead_times WHERE deployment_id = ? ORDER BY commit_sha",
            (deployment_id,),
        )
        return [ChangeLeadTime.from_row(dict(row)) for row in rows]

    async def list_for_commits(self, shas: Iterable[str]) -> list[LeadTimeRecord]:
        """Lead times of the given commits, with their deployment's date,
        repository and service."""
        unique = list(dict.fromkeys(shas))
        records: list[LeadTimeRecord] = []
        for i in range(0, len(unique), _CHUNK_SIZE):
            chunk = unique[i : i + _CHUNK_SIZE]
            placeholders = ", ".join("?" for _ in chunk)
            rows = await self._db.fetch_all(
                f"""
                SELECT lt.commit_sha, lt.deployment_id, lt.lead_time_seconds,
                       d.created_at AS deployment_created_at,
                       d.repository_id, d.service_name
                FROM change_lead_times lt
                JOIN deployments d ON d.id = lt.deployment_id
                WHERE lt.commit_sha IN ({placeholders})
                ORDER BY d.created_at, lt.commit_sha
                """,  # nosec B608
                tuple(chunk),
            )
            records.extend(LeadTimeRecord.from_row(dict(row)) for row in rows)
        return records
