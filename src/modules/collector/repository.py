"""Persistence for collected commits, pull requests, deployments and incidents."""

import sqlite3
from collections.abc import Iterable
from datetime import datetime

import structlog

from src.infrastructure.database import Database, to_db, utc_now
from src.modules.collector.models import (
    PRODUCTION_ENVIRONMENT,
    Commit,
    Deployment,
    Incident,
    IncidentSeverity,
    IncidentState,
    PullRequest,
    SyncStatus,
)

logger = structlog.get_logger()

# SQLite's default limit on host parameters is 999 on older builds
_CHUNK_SIZE = 500


def _chunks(values: list, size: int = _CHUNK_SIZE) -> Iterable[list]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SyncStatusRepository:
    """Watermarks of sync jobs, keyed by job name."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, job_name: str) -> SyncStatus | None:
        row = await self._db.fetch_one(
            "SELECT * FROM sync_status WHERE job_name = ?", (job_name,)
        )
        return SyncStatus.from_row(dict(row)) if row else None

    async def get_last_run(self, job_name: str) -> datetime | None:
        status = await self.get(job_name)
        return status.last_successful_run if status else None

    async def save(self, job_name: str, last_successful_run: datetime | None = None) -> None:
        """Record a successful run (now, unless a time is given)."""
        when = last_successful_run or utc_now()
        await self._db.execute(
            """
            INSERT INTO sync_status (job_name, last_successful_run) VALUES (?, ?)
            ON CONFLICT(job_name) DO UPDATE SET last_successful_run = excluded.last_successful_run
            """,
            (job_name, to_db(when)),
        )
        logger.debug("sync_status_saved", job_name=job_name)


class CommitRepository:
    """Commits and their parent links."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def existing_shas(self, shas: Iterable[str]) -> set[str]:
        """Return which of the given SHAs are already stored."""
        found: set[str] = set()
        for chunk in _chunks(list(dict.fromkeys(shas))):
            rows = await self._db.fetch_all(
                f"SELECT sha FROM commits WHERE sha IN ({_placeholders(len(chunk))})",  # nosec B608
                tuple(chunk),
            )
            found.update(str(row["sha"]) for row in rows)
        return found

    async def save_many(self, commits: list[Commit]) -> int:
        """Insert commits, skipping SHAs that already exist.

        Returns:
            Number of rows inserted.
        """
        return await self._db.execute_many(
            """
            INSERT OR IGNORE INTO commits (sha, repository_id, author, message, date)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (c.sha, c.repository_id, c.author, c.message, to_db(c.date))
                for c in commits
            ],
        )

    async def save_parent_links(self, links: list[tuple[str, str]]) -> int:
        """Store (commit, parent) links where both commits are stored.

        Returns:
            Number of links inserted.
        """
        return await self._db.execute_many(
            """
            INSERT OR IGNORE INTO commit_parents (commit_sha, parent_sha)
            SELECT ?, ?
            WHERE EXISTS (SELECT 1 FROM commits WHERE sha = ?)
              AND EXISTS (SELECT 1 FROM commits WHERE sha = ?)
            """,
            [(child, parent, child, parent) for child, parent in links],
        )

    async def get(self, sha: str) -> Commit | None:
        row = await self._db.fetch_one("SELECT * FROM commits WHERE sha = ?", (sha,))
        if row is None:
            return None
        parents = await self.get_parents([sha])
        return Commit.from_row(dict(row), parents.get(sha))

    async def get_many(self, shas: Iterable[str]) -> list[Commit]:
        rows: list[sqlite3.Row] = []
        for chunk in _chunks(list(dict.fromkeys(shas))):
            rows.extend(
                await self._db.fetch_all(
                    f"SELECT * FROM commits WHERE sha IN ({_placeholders(len(chunk))})",  # nosec B608
                    tuple(chunk),
                )
            )
        return await self._with_parents(rows)

    async def get_parents(self, shas: Iterable[str]) -> dict[str, list[str]]:
        """Map each commit SHA to its stored parent SHAs."""
        parents: dict[str, list[str]] = {}
        for chunk in _chunks(list(dict.fromkeys(shas))):
            rows = await self._db.fetch_all(
                f"""
                SELECT commit_sha, parent_sha FROM commit_parents
                WHERE commit_sha IN ({_placeholders(len(chunk))})
                ORDER BY parent_sha
                """,  # nosec B608
                tuple(chunk),
            )
            for row in rows:
                parents.setdefault(str(row["commit_sha"]), []).append(str(row["parent_sha"]))
        return parents

    async def list_by_authors(self, authors: Iterable[str]) -> list[Commit]:
        """List commits by author usernames, ignoring case, oldest first."""
        names = [a.lower() for a in dict.fromkeys(authors) if a]
        rows: list[sqlite3.Row] = []
        for chunk in _chunks(names):
            rows.extend(
                await self._db.fetch_all(
                    f"""
                    SELECT * FROM commits
                    WHERE LOWER(author) IN ({_placeholders(len(chunk))})
                    ORDER BY date, sha
                    """,  # nosec B608
                    tuple(chunk),
                )
            )
        return await self._with_parents(rows)

    async def _with_parents(self, rows: list[sqlite3.Row]) -> list[Commit]:
        parents = await self.get_parents(str(row["sha"]) for row in rows)
        return [Commit.from_row(dict(row), parents.get(str(row["sha"]))) for row in rows]


class PullRequestRepository:
    """Pull requests keyed by their GitHub id."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def existing_ids(self, ids: Iterable[int]) -> set[int]:
        found: set[int] = set()
        for chunk in _chunks(list(dict.fromkeys(ids))):
            rows = await self._db.fetch_all(
                f"SELECT id FROM pull_requests WHERE id IN ({_placeholders(len(chunk))})",  # nosec B608
                tuple(chunk),
            )
            found.update(int(row["id"]) for row in rows)
        return found

    async def save_many(self, pull_requests: list[PullRequest]) -> int:
        return await self._db.execute_many(
            """
            INSERT OR IGNORE INTO pull_requests
                (id, repository_id, number, title, state, created_at, updated_at,
                 merged_at, first_commit_sha)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    pr.id,
                    pr.repository_id,
                    pr.number,
                    pr.title,
                    pr.state,
                    to_db(pr.created_at),
                    to_db(pr.updated_at),
                    to_db(pr.merged_at),
                    pr.first_commit_sha,
                )
                for pr in pull_requests
            ],
        )

    async def list_with_first_commit(
        self, repository_ids: Iterable[int] | None = None
    ) -> list[PullRequest]:
        """List pull requests whose first commit is known."""
        if repository_ids is None:
            rows = await self._db.fetch_all(
                "SELECT * FROM pull_requests WHERE first_commit_sha IS NOT NULL ORDER BY id"
            )
            return [PullRequest.from_row(dict(row)) for row in rows]

        ids = list(dict.fromkeys(repository_ids))
        if not ids:
            return []
        rows = await self._db.fetch_all(
            f"""
            SELECT * FROM pull_requests
            WHERE first_commit_sha IS NOT NULL
              AND repository_id IN ({_placeholders(len(ids))})
            ORDER BY id
            """,  # nosec B608
            tuple(ids),
        )
        return [PullRequest.from_row(dict(row)) for row in rows]


class DeploymentRepository:
    """Successful deployment runs."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def existing_github_ids(self, github_ids: Iterable[int]) -> set[int]:
        found: set[int] = set()
        for chunk in _chunks(list(dict.fromkeys(github_ids))):
            rows = await self._db.fetch_all(
                f"SELECT github_id FROM deployments WHERE github_id IN ({_placeholders(len(chunk))})",  # nosec B608
                tuple(chunk),
            )
            found.update(int(row["github_id"]) for row in rows)
        return found

    async def save_many(self, deployments: list[Deployment]) -> int:
        """Insert deployments; the ``id`` of each input is ignored."""
        return await self._db.execute_many(
            """
            INSERT OR IGNORE INTO deployments
                (github_id, repository_id, name, head_branch, sha, service_name,
                 status, conclusion, environment, created_at, updated_at,
                 lead_time_processed)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    d.github_id,
                    d.repository_id,
                    d.name,
                    d.head_branch,
                    d.sha,
                    d.service_name,
                    d.status,
                    d.conclusion,
                    d.environment,
                    to_db(d.created_at),
                    to_db(d.updated_at),
                    int(d.lead_time_processed),
                )
                for d in deployments
            ],
        )

    async def get_many(self, deployment_ids: Iterable[int]) -> list[Deployment]:
        ids = list(dict.fromkeys(deployment_ids))
        deployments: list[Deployment] = []
        for chunk in _chunks(ids):
            rows = await self._db.fetch_all(
                f"SELECT * FROM deployments WHERE id IN ({_placeholders(len(chunk))}) ORDER BY id",  # nosec B608
                tuple(chunk),
            )
            deployments.extend(Deployment.from_row(dict(row)) for row in rows)
        return deployments

    async def list_unprocessed_production(self) -> list[Deployment]:
        """Production deployments without lead times yet, oldest first."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM deployments
            WHERE environment = ? AND lead_time_processed = 0
            ORDER BY created_at, id
            """,
            (PRODUCTION_ENVIRONMENT,),
        )
        return [Deployment.from_row(dict(row)) for row in rows]

    async def find_previous_production(self, deployment: Deployment) -> Deployment | None:
        """The latest production deployment of the same repository before this one."""
        row = await self._db.fetch_one(
            """
            SELECT * FROM deployments
            WHERE repository_id = ? AND environment = ? AND id != ?
              AND created_at < ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (
                deployment.repository_id,
                PRODUCTION_ENVIRONMENT,
                deployment.id,
                to_db(deployment.created_at),
            ),
        )
        return Deployment.from_row(dict(row)) if row else None

    async def mark_processed(self, deployment_id: int) -> None:
        await self._db.execute(
            "UPDATE deployments SET lead_time_processed = 1 WHERE id = ?",
            (deployment_id,),
        )

    async def list_between(
        self, environment: str, start: datetime, end: datetime
    ) -> list[Deployment]:
        """Deployments to an environment created within ``[start, end]``."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM deployments
            WHERE environment = ? AND created_at >= ? AND created_at <= ?
            ORDER BY created_at, id
            """,
            (environment, to_db(start), to_db(end)),
        )
        return [Deployment.from_row(dict(row)) for row in rows]


class IncidentRepository:
    """Datadog incidents keyed by their Datadog id."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get_by_datadog_id(self, datadog_incident_id: str) -> Incident | None:
        row = await self._db.fetch_one(
            "SELECT * FROM incidents WHERE datadog_incident_id = ?",
            (datadog_incident_id,),
        )
        return Incident.from_row(dict(row)) if row else None

    async def create(
        self,
        *,
        datadog_incident_id: str,
        repository_id: int | None,
        title: str | None,
        state: IncidentState,
        severity: IncidentSeverity,
        start_time: datetime,
        resolved_time: datetime | None,
        duration_seconds: int | None,
        service_name: str | None,
        created_at: datetime,
        updated_at: datetime,
    ) -> int:
        """Insert an incident.

        Returns:
            The new incident id.
        """
        cursor = await self._db.execute(
            """
            INSERT INTO incidents
                (datadog_incident_id, repository_id, title, state, severity,
                 start_time, resolved_time, duration_seconds, service_name,
                 created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                datadog_incident_id,
                repository_id,
                title,
                state.value,
                severity.value,
                to_db(start_time),
                to_db(resolved_time),
                duration_seconds,
                service_name,
                to_db(created_at),
                to_db(updated_at),
            ),
        )
        return int(cursor.lastrowid or 0)

    async def update_status(
        self,
        incident_id: int,
        *,
        state: IncidentState,
        severity: IncidentSeverity,
        resolved_time: datetime | None,
        duration_seconds: int | None,
        updated_at: datetime,
    ) -> None:
        await self._db.execute(
            """
            UPDATE incidents
            SET state = ?, severity = ?, resolved_time = ?, duration_seconds = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                state.value,
                severity.value,
                to_db(resolved_time),
                duration_seconds,
                to_db(updated_at),
                incident_id,
            ),
        )

    async def list_by_service_between(
        self, service_name: str, start: datetime, end: datetime
    ) -> list[Incident]:
        """Incidents of a service that started within ``[start, end]``."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM incidents
            WHERE service_name = ? AND start_time >= ? AND start_time <= ?
            ORDER BY start_time, id
            """,
            (service_name, to_db(start), to_db(end)),
        )
        return [Incident.from_row(dict(row)) for row in rows]

    async def list_started_between(self, start: datetime, end: datetime) -> list[Incident]:
        """All incidents that started within ``[start, end)``."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM incidents
            WHERE start_time >= ? AND start_time < ?
            ORDER BY start_time, id
            """,
            (to_db(start), to_db(end)),
        )
        return [Incident.from_row(dict(row)) for row in rows]

    async def list_resolved(self, repository_ids: Iterable[int]) -> list[Incident]:
        """Resolved incidents with a duration, for the given repositories."""
        ids = list(dict.fromkeys(repository_ids))
        if not ids:
            return []
        rows = await self._db.fetch_all(
            f"""
            SELECT * FROM incidents
            WHERE state = ? AND duration_seconds IS NOT NULL
              AND repository_id IN ({_placeholders(len(ids))})
            ORDER BY start_time, id
            """,  # nosec B608
            (IncidentState.RESOLVED.value, *ids),
        )
        return [Incident.from_row(dict(row)) for row in rows]
